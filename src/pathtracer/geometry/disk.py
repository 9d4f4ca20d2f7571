"""Disk primitive: a flat circle used on its own and as cylinder caps."""

import taichi as ti
import taichi.math as tm

from pathtracer.geometry.hit_record import HitRecord, make_hit_record, miss_record
from pathtracer.geometry.square import PARALLEL_EPSILON

vec3 = tm.vec3


@ti.dataclass
class Disk:
    """A disk defined by center, unit outward normal and radius.

    Attributes:
        center: The center point of the disk (vec3).
        normal: Unit outward normal (vec3).
        radius: The radius of the disk.
        material_id: Unified material id used for shading.
    """

    center: vec3
    normal: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.func
def hit_disk(
    ray_origin: vec3,
    ray_direction: vec3,
    disk: Disk,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-disk intersection within the open interval (t_min, t_max).

    Same plane test as the square, bounded by a circle: the hit is accepted
    when the squared distance from the center is within radius^2.
    """
    result = miss_record()

    denom = tm.dot(ray_direction, disk.normal)
    if ti.abs(denom) >= PARALLEL_EPSILON:
        t = tm.dot(disk.center - ray_origin, disk.normal) / denom

        if t > t_min and t < t_max:
            offset = ray_origin + t * ray_direction - disk.center
            if tm.dot(offset, offset) <= disk.radius * disk.radius:
                result = make_hit_record(
                    ray_origin, ray_direction, t, disk.normal, disk.material_id
                )

    return result
