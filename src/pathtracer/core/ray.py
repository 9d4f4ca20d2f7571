"""Ray data structure and vector utilities for ray tracing.

This module provides the Ray dataclass and the vector kernel used by every
primitive, material and the camera. All operations are Taichi functions so
they run inside kernels; the random generators draw from an explicit stream
(see ``pathtracer.core.sampler``).

Host-side setup code (camera basis, square axes) uses the NumPy helpers at the
bottom of the module. Those refuse to normalize a zero-length vector instead
of producing NaN.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 5.0)  # Point 5 units along the ray
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import random_float

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Components below this magnitude count as zero for degenerate scatter directions
NEAR_ZERO_EPSILON = 1e-8


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            unit length.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point ray.origin + t * ray.direction."""
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction inside a kernel."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def length(v: vec3) -> ti.f32:
    return tm.length(v)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The input must not be the zero vector; callers guarantee this (kernels
    cannot raise).
    """
    return v / tm.length(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    return tm.cross(a, b)


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect v about the unit normal n: v - 2 dot(v, n) n.

    The result has the same length as v.
    """
    return v - 2.0 * tm.dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit vector through a surface with Snell's law.

    Args:
        uv: Unit incident direction.
        n: Unit normal on the incident side.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The transmitted direction. Only meaningful when refraction is
        possible; callers check for total internal reflection first and
        reflect instead.
    """
    cos_theta = tm.min(-tm.dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -tm.sqrt(ti.abs(1.0 - tm.dot(r_out_perp, r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def schlick_reflectance(cosine: ti.f32, ratio: ti.f32) -> ti.f32:
    """Fresnel reflectance using Schlick's approximation."""
    r0 = (1.0 - ratio) / (1.0 + ratio)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Return 1 if every component of v is below NEAR_ZERO_EPSILON in magnitude."""
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vec3(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> vec3:
    """Random vector with each component uniform in [lo, hi)."""
    x = lo + (hi - lo) * random_float(stream)
    y = lo + (hi - lo) * random_float(stream)
    z = lo + (hi - lo) * random_float(stream)
    return vec3(x, y, z)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Uniform point strictly inside the unit sphere.

    Rejection sampling from the bounding cube; acceptance probability is
    pi/6 per draw.
    """
    p = random_vec3(stream, -1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vec3(stream, -1.0, 1.0)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Uniform direction on the unit sphere.

    Points too close to the center are rejected as well so the normalization
    never divides by zero.
    """
    p = random_vec3(stream, -1.0, 1.0)
    lensq = length_squared(p)
    while lensq >= 1.0 or lensq < 1e-12:
        p = random_vec3(stream, -1.0, 1.0)
        lensq = length_squared(p)
    return p / tm.sqrt(lensq)


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Uniform point (x, y, 0) strictly inside the unit disk.

    Rejection sampling from the bounding square; acceptance probability is
    pi/4 per draw.
    """
    p = vec3(random_float(stream) * 2.0 - 1.0, random_float(stream) * 2.0 - 1.0, 0.0)
    while p.x * p.x + p.y * p.y >= 1.0:
        p = vec3(random_float(stream) * 2.0 - 1.0, random_float(stream) * 2.0 - 1.0, 0.0)
    return p


# =============================================================================
# Host-side helpers (NumPy)
# =============================================================================


def as_vec3(value: Sequence[float]) -> npt.NDArray[np.float64]:
    """Convert a 3-sequence to a float64 NumPy vector.

    Raises:
        ValueError: If value does not have exactly three components.
    """
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {arr.shape}")
    return arr


def normalize_host(value: Sequence[float], what: str = "vector") -> npt.NDArray[np.float64]:
    """Normalize a vector on the host.

    Args:
        value: The vector to normalize.
        what: Name used in the error message.

    Raises:
        ValueError: If the vector has zero length.
    """
    arr = as_vec3(value)
    norm = float(np.linalg.norm(arr))
    if norm < NEAR_ZERO_EPSILON:
        raise ValueError(f"Cannot normalize zero-length {what}: {tuple(arr.tolist())}")
    return arr / norm
