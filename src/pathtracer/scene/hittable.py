"""Host-side hittable objects.

A ``Hittable`` describes geometry on the Python side and flattens itself into
``PrimitiveRecord`` rows for the GPU primitive table. Composite objects are
``HittableList``s: a cube is six squares, and a list may hold other lists.
Flattening preserves the order of the members, so the table scan sees the
same sequence a nested closest-hit search would and returns the same hit,
including which member wins an exact tie.

Example:
    >>> world = HittableList()
    >>> world.add(Square.horizontal((0, 0, 0), 1000.0, material_id=0))
    >>> world.add(Sphere((0, 1, 0), 1.0, material_id=1))
    >>> world.add(Cube.centered((3, 1, 0), 2.0, material_id=1))
    >>> len(list(world.primitives()))
    8
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence

import numpy as np

from pathtracer.core.ray import as_vec3, normalize_host
from pathtracer.geometry.square import square_frame
from pathtracer.scene.intersection import PrimitiveKind, PrimitiveRecord, Vec3Tuple


def _tuple3(value: Sequence[float]) -> Vec3Tuple:
    arr = as_vec3(value)
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def _require_positive(value: float, what: str) -> float:
    if not value > 0.0:
        raise ValueError(f"{what} must be positive, got {value}")
    return float(value)


class Hittable(ABC):
    """Anything that can be flattened into rows of the primitive table."""

    @abstractmethod
    def primitives(self) -> Iterator[PrimitiveRecord]:
        """Yield the flattened primitive rows in intersection order."""

    def to_dict(self) -> dict:
        """Serializable description used by scene configs."""
        raise NotImplementedError(f"{type(self).__name__} cannot be serialized")


class Sphere(Hittable):
    """A sphere given by center and radius."""

    def __init__(self, center: Sequence[float], radius: float, material_id: int) -> None:
        self.center = _tuple3(center)
        self.radius = _require_positive(radius, "Sphere radius")
        self.material_id = material_id

    def primitives(self) -> Iterator[PrimitiveRecord]:
        yield PrimitiveRecord(
            kind=PrimitiveKind.SPHERE,
            material_id=self.material_id,
            center=self.center,
            radius=self.radius,
        )

    def to_dict(self) -> dict:
        return {
            "type": "sphere",
            "center": list(self.center),
            "radius": self.radius,
            "material_id": self.material_id,
        }

    def __repr__(self) -> str:
        return f"Sphere(center={self.center}, radius={self.radius}, material_id={self.material_id})"


class Square(Hittable):
    """A square patch given by center, outward normal and side length.

    The normal is normalized and the in-plane axes are derived once here.
    """

    def __init__(
        self,
        center: Sequence[float],
        normal: Sequence[float],
        size: float,
        material_id: int,
    ) -> None:
        self.center = _tuple3(center)
        self.size = _require_positive(size, "Square size")
        unit_normal, u_axis, v_axis = square_frame(normal)
        self.normal = _tuple3(unit_normal)
        self.u_axis = _tuple3(u_axis)
        self.v_axis = _tuple3(v_axis)
        self.material_id = material_id

    @classmethod
    def horizontal(cls, center: Sequence[float], size: float, material_id: int) -> "Square":
        """Square facing up (+y), e.g. a ground plane."""
        return cls(center, (0.0, 1.0, 0.0), size, material_id)

    @classmethod
    def vertical(cls, center: Sequence[float], size: float, material_id: int) -> "Square":
        """Square facing the default camera (+z)."""
        return cls(center, (0.0, 0.0, 1.0), size, material_id)

    def primitives(self) -> Iterator[PrimitiveRecord]:
        yield PrimitiveRecord(
            kind=PrimitiveKind.SQUARE,
            material_id=self.material_id,
            center=self.center,
            normal=self.normal,
            u_axis=self.u_axis,
            v_axis=self.v_axis,
            size=self.size,
        )

    def to_dict(self) -> dict:
        return {
            "type": "square",
            "center": list(self.center),
            "normal": list(self.normal),
            "size": self.size,
            "material_id": self.material_id,
        }

    def __repr__(self) -> str:
        return (
            f"Square(center={self.center}, normal={self.normal}, "
            f"size={self.size}, material_id={self.material_id})"
        )


class Disk(Hittable):
    """A flat disk given by center, outward normal and radius."""

    def __init__(
        self,
        center: Sequence[float],
        normal: Sequence[float],
        radius: float,
        material_id: int,
    ) -> None:
        self.center = _tuple3(center)
        self.normal = _tuple3(normalize_host(normal, "disk normal"))
        self.radius = _require_positive(radius, "Disk radius")
        self.material_id = material_id

    @classmethod
    def horizontal(cls, center: Sequence[float], radius: float, material_id: int) -> "Disk":
        return cls(center, (0.0, 1.0, 0.0), radius, material_id)

    @classmethod
    def vertical(cls, center: Sequence[float], radius: float, material_id: int) -> "Disk":
        return cls(center, (0.0, 0.0, 1.0), radius, material_id)

    def primitives(self) -> Iterator[PrimitiveRecord]:
        yield PrimitiveRecord(
            kind=PrimitiveKind.DISK,
            material_id=self.material_id,
            center=self.center,
            normal=self.normal,
            radius=self.radius,
        )

    def to_dict(self) -> dict:
        return {
            "type": "disk",
            "center": list(self.center),
            "normal": list(self.normal),
            "radius": self.radius,
            "material_id": self.material_id,
        }


class Cylinder(Hittable):
    """A capped cylinder standing on ``base_center`` along ``axis``."""

    def __init__(
        self,
        base_center: Sequence[float],
        axis: Sequence[float],
        radius: float,
        height: float,
        material_id: int,
    ) -> None:
        self.base_center = _tuple3(base_center)
        self.axis = _tuple3(normalize_host(axis, "cylinder axis"))
        self.radius = _require_positive(radius, "Cylinder radius")
        self.height = _require_positive(height, "Cylinder height")
        self.material_id = material_id

    def primitives(self) -> Iterator[PrimitiveRecord]:
        yield PrimitiveRecord(
            kind=PrimitiveKind.CYLINDER,
            material_id=self.material_id,
            center=self.base_center,
            normal=self.axis,
            radius=self.radius,
            size=self.height,
        )

    def to_dict(self) -> dict:
        return {
            "type": "cylinder",
            "base_center": list(self.base_center),
            "axis": list(self.axis),
            "radius": self.radius,
            "height": self.height,
            "material_id": self.material_id,
        }


class HittableList(Hittable):
    """An ordered collection of hittables, itself a hittable."""

    def __init__(self, objects: Iterable[Hittable] = ()) -> None:
        self.objects: list[Hittable] = list(objects)

    def add(self, obj: Hittable) -> None:
        self.objects.append(obj)

    def clear(self) -> None:
        self.objects.clear()

    def primitives(self) -> Iterator[PrimitiveRecord]:
        for obj in self.objects:
            yield from obj.primitives()

    def to_dict(self) -> dict:
        return {"type": "list", "objects": [obj.to_dict() for obj in self.objects]}

    def __len__(self) -> int:
        return len(self.objects)

    def __iter__(self) -> Iterator[Hittable]:
        return iter(self.objects)


class Cube(HittableList):
    """An axis-aligned box built from six squares.

    Each face is a square centered on the face with an outward normal, sized
    to the larger of the two box dimensions spanning it. For a true cube all
    faces match the box exactly; for an elongated box the faces overhang the
    shorter side.
    """

    def __init__(self, p_min: Sequence[float], p_max: Sequence[float], material_id: int) -> None:
        lo = as_vec3(p_min)
        hi = as_vec3(p_max)
        if np.any(hi <= lo):
            raise ValueError(f"Cube p_max {tuple(hi)} must exceed p_min {tuple(lo)} on every axis")

        self.p_min = _tuple3(lo)
        self.p_max = _tuple3(hi)
        self.material_id = material_id

        width, height, depth = (hi - lo).tolist()
        cx, cy, cz = ((lo + hi) / 2.0).tolist()

        super().__init__(
            [
                Square((cx, cy, hi[2]), (0.0, 0.0, 1.0), max(width, height), material_id),
                Square((cx, cy, lo[2]), (0.0, 0.0, -1.0), max(width, height), material_id),
                Square((cx, hi[1], cz), (0.0, 1.0, 0.0), max(width, depth), material_id),
                Square((cx, lo[1], cz), (0.0, -1.0, 0.0), max(width, depth), material_id),
                Square((hi[0], cy, cz), (1.0, 0.0, 0.0), max(height, depth), material_id),
                Square((lo[0], cy, cz), (-1.0, 0.0, 0.0), max(height, depth), material_id),
            ]
        )

    @classmethod
    def centered(cls, center: Sequence[float], size: float, material_id: int) -> "Cube":
        """Cube of side ``size`` centered on ``center``."""
        c = as_vec3(center)
        half = _require_positive(size, "Cube size") / 2.0
        return cls(c - half, c + half, material_id)

    @classmethod
    def from_size(
        cls,
        corner: Sequence[float],
        width: float,
        height: float,
        depth: float,
        material_id: int,
    ) -> "Cube":
        """Box with its minimum corner at ``corner`` and the given extents."""
        lo = as_vec3(corner)
        return cls(lo, lo + np.array([width, height, depth], dtype=np.float64), material_id)

    def to_dict(self) -> dict:
        return {
            "type": "cube",
            "p_min": list(self.p_min),
            "p_max": list(self.p_max),
            "material_id": self.material_id,
        }


def hittable_from_dict(data: dict) -> Hittable:
    """Rebuild a hittable from its ``to_dict`` description.

    Raises:
        ValueError: If the type is unknown.
    """
    kind = data.get("type", "").lower()
    if kind == "sphere":
        return Sphere(data["center"], data["radius"], data["material_id"])
    if kind == "square":
        return Square(data["center"], data["normal"], data["size"], data["material_id"])
    if kind == "disk":
        return Disk(data["center"], data["normal"], data["radius"], data["material_id"])
    if kind == "cylinder":
        return Cylinder(
            data["base_center"],
            data["axis"],
            data["radius"],
            data["height"],
            data["material_id"],
        )
    if kind == "cube":
        return Cube(data["p_min"], data["p_max"], data["material_id"])
    if kind == "list":
        return HittableList(hittable_from_dict(obj) for obj in data.get("objects", []))
    raise ValueError(f"Unknown hittable type: {kind}")
