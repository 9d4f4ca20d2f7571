"""Scene-level primitive intersection testing.

All primitives live in one tagged table stored in Taichi fields: a ``kind``
tag plus the union of the parameters the four primitive kinds need. Rows are
kept in insertion order. ``intersect_scene`` scans the table linearly with a
shrinking upper bound, so the closest hit wins and, because the comparison is
strict, the earliest row wins an exact tie.

Column usage per kind:

    ============  ===========  =======  ==========  ========
    kind          center       normal   radius      size
    ============  ===========  =======  ==========  ========
    SPHERE        center       -        radius      -
    SQUARE        center       normal   -           side
    DISK          center       normal   radius      -
    CYLINDER      base center  axis     radius      height
    ============  ===========  =======  ==========  ========

Squares additionally use ``u_axis`` and ``v_axis``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.scene.intersection import (
    ...     PrimitiveKind, PrimitiveRecord, add_primitive, clear_scene
    ... )
    >>> clear_scene()
    >>> add_primitive(PrimitiveRecord(PrimitiveKind.SPHERE, 0, center=(0, 0, -1), radius=0.5))
    0
    >>> # Use intersect_scene within a Taichi kernel
"""

from dataclasses import dataclass
from enum import IntEnum

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.cylinder import Cylinder, hit_cylinder
from pathtracer.geometry.disk import Disk, hit_disk
from pathtracer.geometry.hit_record import HitRecord, miss_record
from pathtracer.geometry.sphere import Sphere, hit_sphere
from pathtracer.geometry.square import Square, hit_square

vec3 = tm.vec3

Vec3Tuple = tuple[float, float, float]


class PrimitiveKind(IntEnum):
    """Tag stored in the primitive table for intersection dispatch."""

    SPHERE = 0
    SQUARE = 1
    DISK = 2
    CYLINDER = 3


@dataclass(frozen=True)
class PrimitiveRecord:
    """One flattened row of the primitive table.

    Produced by the host-side hittables and uploaded with ``add_primitive``.
    Unused columns keep their defaults.
    """

    kind: PrimitiveKind
    material_id: int
    center: Vec3Tuple = (0.0, 0.0, 0.0)
    normal: Vec3Tuple = (0.0, 0.0, 0.0)
    u_axis: Vec3Tuple = (0.0, 0.0, 0.0)
    v_axis: Vec3Tuple = (0.0, 0.0, 0.0)
    radius: float = 0.0
    size: float = 0.0


MAX_PRIMITIVES = 4096

# Primitive storage: Structure of Arrays layout
prim_kinds = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
prim_material_ids = ti.field(dtype=ti.i32, shape=MAX_PRIMITIVES)
prim_centers = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
prim_normals = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
prim_u_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
prim_v_axes = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PRIMITIVES)
prim_radii = ti.field(dtype=ti.f32, shape=MAX_PRIMITIVES)
prim_sizes = ti.field(dtype=ti.f32, shape=MAX_PRIMITIVES)
num_primitives = ti.field(dtype=ti.i32, shape=())


def clear_scene() -> None:
    """Clear all primitives from the scene.

    Resets the primitive count to zero. The field data is not cleared but
    will be overwritten when new primitives are added.
    """
    num_primitives[None] = 0


def add_primitive(record: PrimitiveRecord) -> int:
    """Append a primitive row to the table.

    Args:
        record: The flattened primitive.

    Returns:
        The row index of the added primitive.

    Raises:
        RuntimeError: If the maximum number of primitives is exceeded.
    """
    idx = num_primitives[None]
    if idx >= MAX_PRIMITIVES:
        raise RuntimeError(f"Maximum number of primitives ({MAX_PRIMITIVES}) exceeded")

    prim_kinds[idx] = int(record.kind)
    prim_material_ids[idx] = record.material_id
    prim_centers[idx] = vec3(*record.center)
    prim_normals[idx] = vec3(*record.normal)
    prim_u_axes[idx] = vec3(*record.u_axis)
    prim_v_axes[idx] = vec3(*record.v_axis)
    prim_radii[idx] = record.radius
    prim_sizes[idx] = record.size
    num_primitives[None] = idx + 1
    return idx


def get_primitive_count() -> int:
    """Get the number of primitives in the scene."""
    return int(num_primitives[None])


@ti.func
def _hit_primitive(
    i: ti.i32,
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect the ray with table row i, dispatching on its kind."""
    kind = prim_kinds[i]
    rec = miss_record()

    if kind == int(PrimitiveKind.SPHERE):
        sphere = Sphere(
            center=prim_centers[i],
            radius=prim_radii[i],
            material_id=prim_material_ids[i],
        )
        rec = hit_sphere(ray_origin, ray_direction, sphere, t_min, t_max)
    elif kind == int(PrimitiveKind.SQUARE):
        square = Square(
            center=prim_centers[i],
            normal=prim_normals[i],
            u_axis=prim_u_axes[i],
            v_axis=prim_v_axes[i],
            size=prim_sizes[i],
            material_id=prim_material_ids[i],
        )
        rec = hit_square(ray_origin, ray_direction, square, t_min, t_max)
    elif kind == int(PrimitiveKind.DISK):
        disk = Disk(
            center=prim_centers[i],
            normal=prim_normals[i],
            radius=prim_radii[i],
            material_id=prim_material_ids[i],
        )
        rec = hit_disk(ray_origin, ray_direction, disk, t_min, t_max)
    elif kind == int(PrimitiveKind.CYLINDER):
        cylinder = Cylinder(
            base_center=prim_centers[i],
            axis=prim_normals[i],
            radius=prim_radii[i],
            height=prim_sizes[i],
            material_id=prim_material_ids[i],
        )
        rec = hit_cylinder(ray_origin, ray_direction, cylinder, t_min, t_max)

    return rec


@ti.func
def intersect_scene(
    ray_origin: vec3,
    ray_direction: vec3,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test ray against all primitives in the scene.

    Iterates the table in insertion order, testing each row against the
    interval (t_min, closest_t) and tightening closest_t on every hit.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord containing the closest intersection, or a miss record if
        no intersection was found.
    """
    closest_t = t_max
    result = miss_record()

    n = num_primitives[None]
    for i in range(n):
        rec = _hit_primitive(i, ray_origin, ray_direction, t_min, closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec

    return result


# =============================================================================
# Host-side queries
# =============================================================================


@dataclass
class SceneHit:
    """Closest intersection returned by ``query_scene``."""

    t: float
    point: tuple[float, ...]
    normal: tuple[float, ...]
    front_face: bool
    material_id: int


_query_hit = ti.field(dtype=ti.i32, shape=())
_query_t = ti.field(dtype=ti.f32, shape=())
_query_point = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
_query_front_face = ti.field(dtype=ti.i32, shape=())
_query_material_id = ti.field(dtype=ti.i32, shape=())


@ti.kernel
def _query_kernel(ray_origin: vec3, ray_direction: vec3, t_min: ti.f32, t_max: ti.f32):
    # Nested so the scan inside intersect_scene stays serial
    for _ in range(1):
        rec = intersect_scene(ray_origin, ray_direction, t_min, t_max)
        _query_hit[None] = rec.hit
        _query_t[None] = rec.t
        _query_point[None] = rec.point
        _query_normal[None] = rec.normal
        _query_front_face[None] = rec.front_face
        _query_material_id[None] = rec.material_id


def query_scene(
    origin: Vec3Tuple,
    direction: Vec3Tuple,
    t_min: float = 0.001,
    t_max: float = float("inf"),
) -> SceneHit | None:
    """Find the closest hit for a single ray from Python.

    Intended for tests and debugging; rendering calls ``intersect_scene``
    inside kernels.

    Returns:
        The closest SceneHit, or None if the ray misses every primitive.
    """
    _query_kernel(vec3(*origin), vec3(*direction), t_min, t_max)
    if _query_hit[None] == 0:
        return None
    return SceneHit(
        t=float(_query_t[None]),
        point=tuple(float(x) for x in _query_point.to_numpy()),
        normal=tuple(float(x) for x in _query_normal.to_numpy()),
        front_face=bool(_query_front_face[None]),
        material_id=int(_query_material_id[None]),
    )
