"""Unified scene manager for coordinating primitives and materials.

This module provides a high-level scene management API that coordinates the
primitive table with material assignment. It tracks which material type
(Lambertian, Metal, Dielectric) each material ID corresponds to, enabling
material dispatch in the integrator.

The SceneManager maintains:
- A unified material_id space across all material types (the material arena)
- Mapping from material_id to (material_type, type_local_index)
- The top-level hittables, flattened into the primitive table as they are added
- Scene serialization/configuration support

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> mat_id = scene.add_lambertian_material(albedo=(0.8, 0.3, 0.3))
    >>> scene.add_sphere(center=(0, 0, -1), radius=0.5, material_id=mat_id)
    [0]
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from pathtracer.materials.dielectric import (
    add_dielectric_material,
    clear_dielectric_materials,
)
from pathtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from pathtracer.materials.metal import (
    add_metal_material,
    clear_metal_materials,
)
from pathtracer.scene.hittable import (
    Cube,
    Cylinder,
    Disk,
    Hittable,
    Sphere,
    Square,
    hittable_from_dict,
)
from pathtracer.scene.intersection import (
    MAX_PRIMITIVES,
    SceneHit,
    add_primitive,
    clear_scene,
    get_primitive_count,
    query_scene,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the integrator to determine which
    scattering function to call.
    """

    LAMBERTIAN = 0
    METAL = 1
    DIELECTRIC = 2


# Maximum number of materials across all types
MAX_MATERIALS = 768  # 256 per type * 3 types

# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd metal material, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, Metal, Dielectric).
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations, in material_id order.
        objects: List of top-level hittable configurations, in insertion order.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    objects: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Unified scene manager coordinating primitives and materials.

    Materials are registered first and referenced by their unified id. Every
    hittable added to the scene is flattened into the primitive table
    immediately, in insertion order; the order determines which primitive
    wins an exact tie in the closest-hit search.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        objects: Top-level hittables in insertion order.

    Example:
        >>> scene = SceneManager()
        >>> ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
        >>> red_metal = scene.add_metal_material(albedo=(0.8, 0.2, 0.2), fuzz=0.1)
        >>> scene.add(Square.horizontal((0, 0, 0), 1000.0, ground))
        [0]
        >>> scene.add_sphere((0, 1, 0), 1.0, red_metal)
        [1]
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.objects: list[Hittable] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_metal_materials()
        clear_dielectric_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.objects.clear()

    def clear(self) -> None:
        """Clear the entire scene (primitives and materials)."""
        self._clear_all()
        logger.debug("Scene cleared")

    # =========================================================================
    # Material Management
    # =========================================================================

    def _register_material(
        self,
        material_type: MaterialType,
        type_index: int,
        params: dict[str, Any],
    ) -> int:
        material_id = num_materials[None]
        if material_id >= MAX_MATERIALS:
            raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

        material_types[material_id] = int(material_type)
        material_type_indices[material_id] = type_index
        num_materials[None] = material_id + 1

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material_type,
                type_index=type_index,
                params=params,
            )
        )
        logger.debug("Registered %s material %d: %s", material_type.name, material_id, params)
        return material_id

    def add_lambertian_material(self, albedo: tuple[float, float, float]) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
                Each component must be in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        return self._register_material(
            MaterialType.LAMBERTIAN, type_index, {"albedo": tuple(albedo)}
        )

    def add_metal_material(
        self,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> int:
        """Add a metal (specular reflective) material to the scene.

        Args:
            albedo: The reflective color as (R, G, B) tuple.
            fuzz: Reflection perturbation in [0, 1]. Default is 0 (perfect mirror).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component or fuzz is outside [0, 1].
        """
        type_index = add_metal_material(albedo, fuzz)
        return self._register_material(
            MaterialType.METAL, type_index, {"albedo": tuple(albedo), "fuzz": fuzz}
        )

    def add_dielectric_material(self, ior: float = 1.5) -> int:
        """Add a dielectric (glass/water) material to the scene.

        Args:
            ior: Index of refraction. Default is 1.5 (typical glass).

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If IOR is less than 1.0.
        """
        type_index = add_dielectric_material(ior)
        return self._register_material(MaterialType.DIELECTRIC, type_index, {"ior": ior})

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID, or None if not found."""
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For lookups inside kernels, use the get_material_type() Taichi function.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Primitive Management
    # =========================================================================

    def add(self, obj: Hittable) -> list[int]:
        """Add a hittable (primitive or aggregate) to the scene.

        The object is flattened and every resulting primitive is appended to
        the table. Material ids and table capacity are checked before anything
        is uploaded, so a rejected object leaves the scene unchanged.

        Args:
            obj: The hittable to add.

        Returns:
            The primitive table indices of the flattened rows.

        Raises:
            ValueError: If any primitive references an unknown material_id.
            RuntimeError: If the primitive table cannot hold every flattened row.
        """
        records = list(obj.primitives())
        for record in records:
            if record.material_id < 0 or record.material_id >= num_materials[None]:
                raise ValueError(f"Invalid material_id: {record.material_id}")
        if get_primitive_count() + len(records) > MAX_PRIMITIVES:
            raise RuntimeError(
                f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded: "
                f"{get_primitive_count()} in table, {len(records)} to add"
            )

        indices = [add_primitive(record) for record in records]
        self.objects.append(obj)
        logger.debug("Added %r as %d primitive(s)", obj, len(indices))
        return indices

    def add_sphere(
        self,
        center: Sequence[float],
        radius: float,
        material_id: int,
    ) -> list[int]:
        """Add a sphere to the scene.

        Raises:
            ValueError: If the radius is not positive or material_id is invalid.
        """
        return self.add(Sphere(center, radius, material_id))

    def add_square(
        self,
        center: Sequence[float],
        normal: Sequence[float],
        size: float,
        material_id: int,
    ) -> list[int]:
        """Add a square patch to the scene.

        Raises:
            ValueError: If the normal is zero, the size is not positive or
                material_id is invalid.
        """
        return self.add(Square(center, normal, size, material_id))

    def add_disk(
        self,
        center: Sequence[float],
        normal: Sequence[float],
        radius: float,
        material_id: int,
    ) -> list[int]:
        return self.add(Disk(center, normal, radius, material_id))

    def add_cylinder(
        self,
        base_center: Sequence[float],
        axis: Sequence[float],
        radius: float,
        height: float,
        material_id: int,
    ) -> list[int]:
        return self.add(Cylinder(base_center, axis, radius, height, material_id))

    def add_cube(
        self,
        p_min: Sequence[float],
        p_max: Sequence[float],
        material_id: int,
    ) -> list[int]:
        """Add an axis-aligned cube (six squares) spanning p_min to p_max."""
        return self.add(Cube(p_min, p_max, material_id))

    # =========================================================================
    # Convenience Methods (add object with material in one call)
    # =========================================================================

    def add_lambertian_sphere(
        self,
        center: Sequence[float],
        radius: float,
        albedo: tuple[float, float, float],
    ) -> tuple[int, int]:
        """Add a sphere with a new Lambertian material.

        Returns:
            Tuple of (primitive_index, material_id).
        """
        material_id = self.add_lambertian_material(albedo)
        (index,) = self.add_sphere(center, radius, material_id)
        return index, material_id

    def add_metal_sphere(
        self,
        center: Sequence[float],
        radius: float,
        albedo: tuple[float, float, float],
        fuzz: float = 0.0,
    ) -> tuple[int, int]:
        material_id = self.add_metal_material(albedo, fuzz)
        (index,) = self.add_sphere(center, radius, material_id)
        return index, material_id

    def add_dielectric_sphere(
        self,
        center: Sequence[float],
        radius: float,
        ior: float = 1.5,
    ) -> tuple[int, int]:
        material_id = self.add_dielectric_material(ior)
        (index,) = self.add_sphere(center, radius, material_id)
        return index, material_id

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_primitive_count(self) -> int:
        """Get the number of rows in the primitive table."""
        return get_primitive_count()

    def hit(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
        t_min: float = 0.001,
        t_max: float = float("inf"),
    ) -> SceneHit | None:
        """Closest hit of a single ray against the whole scene.

        Returns:
            The SceneHit, or None if the ray misses.
        """
        return query_scene(tuple(origin), tuple(direction), t_min, t_max)

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object."""
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value) if isinstance(value, tuple) else value
            config.materials.append(mat_config)

        for obj in self.objects:
            config.objects.append(obj.to_dict())

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration. Materials are
        loaded first so objects can reference them by id.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                albedo_list = mat_config.get("albedo", [0.5, 0.5, 0.5])
                self.add_lambertian_material((albedo_list[0], albedo_list[1], albedo_list[2]))
            elif mat_type == "metal":
                albedo_list = mat_config.get("albedo", [0.8, 0.8, 0.8])
                self.add_metal_material(
                    (albedo_list[0], albedo_list[1], albedo_list[2]),
                    mat_config.get("fuzz", 0.0),
                )
            elif mat_type == "dielectric":
                self.add_dielectric_material(mat_config.get("ior", 1.5))
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for obj_config in config.objects:
            self.add(hittable_from_dict(obj_config))

        logger.info(
            "Loaded scene: %d material(s), %d primitive(s)",
            self.get_material_count(),
            self.get_primitive_count(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization)."""
        config = self.to_config()
        return {"materials": config.materials, "objects": config.objects}

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary with 'materials' and 'objects' keys."""
        self.from_config(
            SceneConfig(
                materials=list(data.get("materials", [])),
                objects=list(data.get("objects", [])),
            )
        )

    @staticmethod
    def get_max_primitives() -> int:
        return MAX_PRIMITIVES

    @staticmethod
    def get_max_materials() -> int:
        return MAX_MATERIALS

    def __repr__(self) -> str:
        return (
            f"SceneManager(materials={self.get_material_count()}, "
            f"primitives={self.get_primitive_count()})"
        )
