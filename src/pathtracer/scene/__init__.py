"""Scene module for scene management and ray-scene queries.

Components:
    intersection: Primitive table in Taichi fields and the closest-hit scan
    hittable: Host-side hittables (sphere, square, disk, cylinder, cube, list)
    manager: Unified scene manager coordinating primitives and materials
    scenes: Demo scene factories

Scene data is organized for efficient GPU access:
    - Structure-of-Arrays layout for geometric data
    - One tagged row per primitive, scanned in insertion order
    - Contiguous material id arrays
"""

from .hittable import (
    Cube,
    Cylinder,
    Disk,
    Hittable,
    HittableList,
    Sphere,
    Square,
    hittable_from_dict,
)
from .intersection import (
    MAX_PRIMITIVES,
    PrimitiveKind,
    PrimitiveRecord,
    SceneHit,
    add_primitive,
    clear_scene,
    get_primitive_count,
    intersect_scene,
    query_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    get_material_type,
    get_material_type_index,
    material_type_indices,
    material_types,
    num_materials,
)
from .scenes import (
    SCENES,
    get_scene,
    scene_all_objects,
    scene_all_objects_alt_camera,
    scene_plane_cube,
    scene_sphere,
)

__all__ = [
    # Hittables
    "Hittable",
    "HittableList",
    "Sphere",
    "Square",
    "Disk",
    "Cylinder",
    "Cube",
    "hittable_from_dict",
    # Intersection module
    "PrimitiveKind",
    "PrimitiveRecord",
    "SceneHit",
    "add_primitive",
    "clear_scene",
    "get_primitive_count",
    "intersect_scene",
    "query_scene",
    "MAX_PRIMITIVES",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    "material_types",
    "material_type_indices",
    "num_materials",
    # Demo scenes
    "SCENES",
    "get_scene",
    "scene_sphere",
    "scene_plane_cube",
    "scene_all_objects",
    "scene_all_objects_alt_camera",
]
