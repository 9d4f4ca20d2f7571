"""Sphere primitive with ray-sphere intersection.

The ray-sphere intersection solves

    |origin + t * direction - center|^2 = radius^2

in the half-b form a*t^2 + 2*h*t + c = 0 with

    a = dot(direction, direction)
    h = dot(direction, origin - center)
    c = |origin - center|^2 - radius^2

The roots are computed with the cancellation-free formulation from Ray Tracing
Gems; the same solver serves the lateral surface of the cylinder.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.hit_record import HitRecord, make_hit_record, miss_record

vec3 = tm.vec3


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material_id: Unified material id used for shading.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.func
def solve_quadratic_half_b(a: ti.f32, h: ti.f32, c: ti.f32, sqrt_d: ti.f32):
    """Solve a*t^2 + 2*h*t + c = 0 for a > 0 and a non-negative discriminant.

    Uses q = -(h + sign(h) * sqrt_d), t0 = q / a, t1 = c / q to avoid
    catastrophic cancellation when h^2 is close to a*c.

    Args:
        a: Quadratic coefficient (positive).
        h: Half of the linear coefficient.
        c: Constant term.
        sqrt_d: Square root of the discriminant h^2 - a*c.

    Returns:
        Tuple (t0, t1) with t0 <= t1.
    """
    sign_h = ti.select(h < 0.0, -1.0, 1.0)
    q = -(h + sign_h * sqrt_d)

    t0 = 0.0
    t1 = 0.0
    if ti.abs(q) < 1e-10:
        # Ray tangent through the center of the quadric
        t0 = (-h - sqrt_d) / a
        t1 = (-h + sqrt_d) / a
    else:
        t0 = q / a
        t1 = c / q

    if t0 > t1:
        temp = t0
        t0 = t1
        t1 = temp

    return t0, t1


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection within the open interval (t_min, t_max).

    The smaller root is tested first; if it falls outside the interval the
    larger root is tried, so a ray starting inside the sphere hits the far
    wall from the back face.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (need not be normalized).
        sphere: The sphere to test intersection against.
        t_min: Exclusive lower bound on t.
        t_max: Exclusive upper bound on t.

    Returns:
        A HitRecord; check ``hit`` to see whether the sphere was struck.
    """
    oc = ray_origin - sphere.center
    a = tm.dot(ray_direction, ray_direction)
    h = tm.dot(ray_direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius
    discriminant = h * h - a * c

    result = miss_record()

    if discriminant >= 0.0:
        sqrt_d = ti.sqrt(discriminant)
        t0, t1 = solve_quadratic_half_b(a, h, c, sqrt_d)

        t = t0
        valid = t > t_min and t < t_max
        if not valid:
            t = t1
            valid = t > t_min and t < t_max

        if valid:
            hit_point = ray_origin + t * ray_direction
            outward_normal = (hit_point - sphere.center) / sphere.radius
            result = make_hit_record(
                ray_origin, ray_direction, t, outward_normal, sphere.material_id
            )

    return result
