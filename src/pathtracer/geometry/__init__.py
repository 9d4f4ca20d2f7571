"""Geometry module for primitive intersection.

This module provides the primitives and their intersection routines:

Components:
    hit_record: The HitRecord structure and face-orientation helper
    sphere: Sphere primitive and the shared half-b quadratic solver
    square: Oriented square patch (cube faces, ground planes)
    disk: Flat circle (standalone or cylinder cap)
    cylinder: Capped cylinder (tube plus two disks)

All intersection routines are Taichi functions (@ti.func) with the signature

    rec = hit_<shape>(ray_origin, ray_direction, shape, t_min, t_max)

and test the open interval (t_min, t_max). The stored normal always faces
the incoming ray.
"""

from .cylinder import Cylinder, hit_cylinder
from .disk import Disk, hit_disk
from .hit_record import HitRecord, face_normal, make_hit_record, miss_record
from .sphere import Sphere, hit_sphere, solve_quadratic_half_b
from .square import Square, hit_square, square_frame

__all__ = [
    "HitRecord",
    "face_normal",
    "make_hit_record",
    "miss_record",
    "Sphere",
    "hit_sphere",
    "solve_quadratic_half_b",
    "Square",
    "hit_square",
    "square_frame",
    "Disk",
    "hit_disk",
    "Cylinder",
    "hit_cylinder",
]
