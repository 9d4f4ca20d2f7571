"""Finite capped cylinder: a lateral tube plus two disk caps.

The tube is intersected by removing the axial component from both the ray
direction and the origin offset, then solving the sphere's half-b quadratic
on what remains:

    d_perp  = D - dot(D, axis) * axis
    oc_perp = (O - base) - dot(O - base, axis) * axis

    a = |d_perp|^2,  h = dot(d_perp, oc_perp),  c = |oc_perp|^2 - radius^2

Roots whose axial coordinate dot(P - base, axis) lies outside [0, height] are
rejected. The caps are disks at the base (outward normal -axis) and at the top
(outward normal +axis). The tube and both caps are tested against the same
shrinking upper bound, so the closest surviving surface wins, exactly as in
the scene aggregate.
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.disk import Disk, hit_disk
from pathtracer.geometry.hit_record import HitRecord, make_hit_record, miss_record
from pathtracer.geometry.sphere import solve_quadratic_half_b

vec3 = tm.vec3

# Below this |d_perp|^2 the ray runs parallel to the axis and only the caps can be hit
_AXIS_PARALLEL_EPSILON = 1e-12


@ti.dataclass
class Cylinder:
    """A capped cylinder.

    Attributes:
        base_center: Center of the base cap (vec3).
        axis: Unit axis from the base toward the top cap (vec3).
        radius: Radius of the tube and caps.
        height: Distance between the caps along the axis.
        material_id: Unified material id used for shading.
    """

    base_center: vec3
    axis: vec3
    radius: ti.f32
    height: ti.f32
    material_id: ti.i32


@ti.func
def _tube_candidate(
    ray_origin: vec3,
    ray_direction: vec3,
    cylinder: Cylinder,
    t: ti.f32,
) -> HitRecord:
    """Hit record for a tube root, or a miss if it lies beyond the caps."""
    result = miss_record()
    hit_point = ray_origin + t * ray_direction
    axial = tm.dot(hit_point - cylinder.base_center, cylinder.axis)
    if axial >= 0.0 and axial <= cylinder.height:
        outward_normal = (
            hit_point - cylinder.base_center - axial * cylinder.axis
        ) / cylinder.radius
        result = make_hit_record(
            ray_origin, ray_direction, t, outward_normal, cylinder.material_id
        )
    return result


@ti.func
def _hit_tube(
    ray_origin: vec3,
    ray_direction: vec3,
    cylinder: Cylinder,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Intersect only the lateral surface within (t_min, t_max)."""
    result = miss_record()

    axis = cylinder.axis
    oc = ray_origin - cylinder.base_center
    d_perp = ray_direction - tm.dot(ray_direction, axis) * axis
    oc_perp = oc - tm.dot(oc, axis) * axis

    a = tm.dot(d_perp, d_perp)
    h = tm.dot(d_perp, oc_perp)
    c = tm.dot(oc_perp, oc_perp) - cylinder.radius * cylinder.radius
    discriminant = h * h - a * c

    if a > _AXIS_PARALLEL_EPSILON and discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = solve_quadratic_half_b(a, h, c, sqrt_d)

        # Nearer root first; the farther one only counts if the nearer is clipped
        if t0 > t_min and t0 < t_max:
            result = _tube_candidate(ray_origin, ray_direction, cylinder, t0)
        if result.hit == 0 and t1 > t_min and t1 < t_max:
            result = _tube_candidate(ray_origin, ray_direction, cylinder, t1)

    return result


@ti.func
def base_cap(cylinder: Cylinder) -> Disk:
    return Disk(
        center=cylinder.base_center,
        normal=-cylinder.axis,
        radius=cylinder.radius,
        material_id=cylinder.material_id,
    )


@ti.func
def top_cap(cylinder: Cylinder) -> Disk:
    return Disk(
        center=cylinder.base_center + cylinder.height * cylinder.axis,
        normal=cylinder.axis,
        radius=cylinder.radius,
        material_id=cylinder.material_id,
    )


@ti.func
def hit_cylinder(
    ray_origin: vec3,
    ray_direction: vec3,
    cylinder: Cylinder,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-cylinder intersection within the open interval (t_min, t_max).

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        cylinder: The cylinder to test intersection against.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        The closest HitRecord among the tube and both caps.
    """
    closest = t_max
    result = _hit_tube(ray_origin, ray_direction, cylinder, t_min, closest)
    if result.hit == 1:
        closest = result.t

    rec = hit_disk(ray_origin, ray_direction, base_cap(cylinder), t_min, closest)
    if rec.hit == 1:
        closest = rec.t
        result = rec

    rec = hit_disk(ray_origin, ray_direction, top_cap(cylinder), t_min, closest)
    if rec.hit == 1:
        result = rec

    return result
