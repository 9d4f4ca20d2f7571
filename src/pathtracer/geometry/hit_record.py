"""Hit record produced by every primitive intersection routine.

The stored normal always points against the incoming ray. ``front_face``
records whether the ray struck the geometrically outward side, which is what
dielectrics use to decide whether the ray is entering or leaving the medium.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-primitive intersection.

    Attributes:
        hit: 1 if the ray intersected the primitive, 0 on a miss.
        t: The ray parameter of the intersection. Only valid if hit == 1.
        point: The intersection point. Only valid if hit == 1.
        normal: Unit surface normal facing the ray origin's side.
            Only valid if hit == 1.
        front_face: 1 if the ray hit the outward face, 0 if it hit from
            inside. Only valid if hit == 1.
        material_id: Unified material id of the primitive (-1 on a miss).
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient an outward normal against the ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: Unit normal pointing out of the surface.

    Returns:
        Tuple (front_face, normal) where front_face is 1 when
        dot(ray_direction, outward_normal) < 0 and normal is the outward
        normal for front-face hits and its negation otherwise.
    """
    front_face = 1
    normal = outward_normal
    if tm.dot(ray_direction, outward_normal) >= 0.0:
        front_face = 0
        normal = -outward_normal
    return front_face, normal


@ti.func
def make_hit_record(
    ray_origin: vec3,
    ray_direction: vec3,
    t: ti.f32,
    outward_normal: vec3,
    material_id: ti.i32,
) -> HitRecord:
    """Build a hit record for a root t with the given outward normal."""
    front_face, normal = face_normal(ray_direction, outward_normal)
    return HitRecord(
        hit=1,
        t=t,
        point=ray_origin + t * ray_direction,
        normal=normal,
        front_face=front_face,
        material_id=material_id,
    )


@ti.func
def miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
