"""Core rendering module.

Components:
    sampler: Per-pixel random number streams
    ray: Ray data structure, vector kernel and random direction sampling
    integrator: Iterative path tracer and render target
    progressive: Render driver with batches, callbacks and raster output

All compute-intensive operations are Taichi functions and kernels.
"""

from .ray import (
    Ray,
    as_vec3,
    cross,
    dot,
    length,
    length_squared,
    make_ray,
    near_zero,
    normalize,
    normalize_host,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vec3,
    ray_at,
    reflect,
    refract,
    schlick_reflectance,
    vec3,
)
from .sampler import (
    MAX_STREAMS,
    get_stream_state,
    pcg_hash,
    random_float,
    random_range,
    random_u32,
    seed_streams,
)

# Note: integrator and progressive are NOT imported here to avoid circular imports.
# Import them directly from pathtracer.core.integrator or pathtracer.core.progressive.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "length",
    "length_squared",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "refract",
    "schlick_reflectance",
    "near_zero",
    "random_vec3",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
    "as_vec3",
    "normalize_host",
    "MAX_STREAMS",
    "seed_streams",
    "pcg_hash",
    "random_u32",
    "random_float",
    "random_range",
    "get_stream_state",
]
