"""Square primitive: a finite, oriented plane patch.

A square is defined by:
- center: The center point of the patch
- normal: Unit outward normal
- u_axis, v_axis: Orthonormal in-plane axes
- size: Side length

The in-plane axes are derived once on the host by crossing the normal with the
world axis least aligned with it, which gives a stable basis for any normal.

Ray-square intersection uses the plane test:
1. Find where the ray meets the supporting plane
2. Project the hit point onto (u_axis, v_axis) relative to the center
3. Reject if either coordinate exceeds size / 2 in magnitude

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.square import square_frame
    >>> normal, u_axis, v_axis = square_frame((0.0, 1.0, 0.0))
    >>> # Upload to a Square and use hit_square within a Taichi kernel
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.ray import normalize_host
from pathtracer.geometry.hit_record import HitRecord, make_hit_record, miss_record

vec3 = tm.vec3

# Rays with |dot(direction, normal)| below this are treated as parallel
PARALLEL_EPSILON = 1e-8


@ti.dataclass
class Square:
    """An oriented square patch.

    Attributes:
        center: The center point of the square (vec3).
        normal: Unit outward normal (vec3).
        u_axis: First unit in-plane axis (vec3).
        v_axis: Second unit in-plane axis (vec3).
        size: Side length.
        material_id: Unified material id used for shading.
    """

    center: vec3
    normal: vec3
    u_axis: vec3
    v_axis: vec3
    size: ti.f32
    material_id: ti.i32


def square_frame(
    normal: Sequence[float],
) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Compute the unit normal and orthonormal in-plane axes for a square.

    Args:
        normal: The outward normal (any non-zero length).

    Returns:
        Tuple (unit_normal, u_axis, v_axis) with v_axis = cross(normal, u_axis).

    Raises:
        ValueError: If the normal has zero length.
    """
    unit_normal = normalize_host(normal, "square normal")

    # World axis least aligned with the normal keeps the cross product well conditioned
    reference = np.zeros(3)
    reference[int(np.argmin(np.abs(unit_normal)))] = 1.0

    u_axis = np.cross(unit_normal, reference)
    u_axis = u_axis / np.linalg.norm(u_axis)
    v_axis = np.cross(unit_normal, u_axis)
    return unit_normal, u_axis, v_axis


@ti.func
def hit_square(
    ray_origin: vec3,
    ray_direction: vec3,
    square: Square,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-square intersection within the open interval (t_min, t_max).

    The plane parameter is

        t = dot(center - origin, normal) / dot(direction, normal)

    A ray parallel to the plane misses. Points on the square's edges count as
    hits.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        square: The square to test intersection against.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord; check ``hit`` to see whether the square was struck.
    """
    result = miss_record()

    denom = tm.dot(ray_direction, square.normal)
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(square.center - ray_origin, square.normal) / denom

        if t > t_min and t < t_max:
            hit_point = ray_origin + t * ray_direction
            local = hit_point - square.center
            u_coord = tm.dot(local, square.u_axis)
            v_coord = tm.dot(local, square.v_axis)
            half_size = 0.5 * square.size

            if ti.abs(u_coord) <= half_size and ti.abs(v_coord) <= half_size:
                result = make_hit_record(
                    ray_origin, ray_direction, t, square.normal, square.material_id
                )

    return result
