"""Path tracing integrator for Monte Carlo light transport.

``ray_color`` estimates the light arriving along a ray. The recursive
definition

    ray_color(ray, depth) =
        black                                        if depth == 0
        attenuation * ray_color(scattered, depth-1)  if the ray hits and scatters
        black                                        if the ray hits and is absorbed
        sky(ray)                                     if the ray misses

is evaluated as a loop that multiplies a running throughput by each bounce's
attenuation and replaces the ray, which is equivalent and needs no stack.
Hits are accepted in (T_MIN, T_MAX); the lower bound keeps a scattered ray
from immediately re-hitting the surface it left.

The sky is a vertical gradient from white to light blue blended by
``a = 0.5 * (unit_direction.y + 1)``.

The render target accumulates the linear color sum and the sample count per
pixel. Averaging and tone mapping happen at the output edge
(``pathtracer.preview.tonemap``).

Every pixel draws from its own random stream (its raster index), so a render
with a fixed seed is reproducible however the kernel is scheduled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.scenes import scene_sphere
    >>>
    >>> scene, camera = scene_sphere()
    >>> setup_camera(camera)
    >>> setup_render_target(300, 200, seed=7)
    >>> render_image(num_samples=16, max_depth=50)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray_for_pixel, is_camera_ready
from pathtracer.config import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from pathtracer.core.ray import normalize
from pathtracer.core.sampler import seed_streams
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

vec3 = tm.vec3

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget
MAX_DEPTH = 50

# Hit interval for every bounce
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
SKY_WHITE = vec3(1.0, 1.0, 1.0)
SKY_BLUE = vec3(0.5, 0.7, 1.0)


def sky_color_numpy(direction: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Host-side sky gradient for a ray direction (reference for tests)."""
    d = np.asarray(direction, dtype=np.float64)
    a = 0.5 * (d[1] / np.linalg.norm(d) + 1.0)
    return (1.0 - a) * np.array([1.0, 1.0, 1.0]) + a * np.array([0.5, 0.7, 1.0])


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear color sum per pixel (preallocated to max size)
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Sample count per pixel (preallocated to max size)
_sample_count = ti.field(dtype=ti.i32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int, seed: int = 0) -> None:
    """Initialize the render target buffers and the per-pixel random streams.

    The buffers are preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to
    avoid kernel recompilation when the size changes.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).
        seed: Seed for the per-pixel random streams.

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum
            supported size, or the seed does not fit in 32 bits.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    seed_streams(seed, width * height)

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_sum.fill(0.0)
    _sample_count.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_camera_ready() -> None:
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scatter function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal facing the incoming ray.
        front_face: 1 if hit front face, 0 if back face.
        stream: Random stream of the pixel being traced.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). An
        unknown material absorbs.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )
    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )
    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def background_color(direction: vec3) -> vec3:
    """Sky gradient seen by a ray that leaves the scene."""
    unit_direction = normalize(direction)
    a = 0.5 * (unit_direction.y + 1.0)
    return (1.0 - a) * SKY_WHITE + a * SKY_BLUE


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the color carried back along a ray.

    Args:
        origin: Ray origin.
        direction: Ray direction (any non-zero length).
        max_depth: Bounce budget. A path still bouncing when the budget runs
            out contributes black.
        stream: Random stream of the pixel being traced.

    Returns:
        The linear RGB estimate for this path.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag instead of break; color stays black unless the path escapes
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.func
def pixel_stream(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> ti.i32:
    """Raster index of a pixel (top row first), used as its random stream."""
    return (height - 1 - pixel_j) * width + pixel_i


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32, jitter: ti.i32):
    """Trace one sample through every pixel and accumulate it."""
    for i, j in ti.ndrange(width, height):
        stream = pixel_stream(i, j, width, height)
        ray = get_ray_for_pixel(i, j, width, height, stream, jitter)
        color = ray_color(ray.origin, ray.direction, max_depth, stream)

        _color_sum[i, j] += color
        _sample_count[i, j] += 1


_trace_result = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32):
    # Nested so the scene scan stays serial
    for _ in range(1):
        _trace_result[None] = ray_color(origin, direction, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = MAX_DEPTH,
    stream: int = 0,
) -> npt.NDArray[np.float32]:
    """Evaluate ray_color for a single ray from Python.

    Intended for tests and debugging. The stream must have been seeded
    (setup_render_target or seed_streams).

    Returns:
        The RGB estimate as a NumPy array.

    Raises:
        ValueError: If max_depth is negative.
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")
    _trace_ray_kernel(vec3(*origin), vec3(*direction), max_depth, stream)
    return _trace_result.to_numpy()


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH, jitter: bool = True) -> None:
    """Accumulate samples for every pixel.

    Can be called repeatedly to add more samples.

    Args:
        num_samples: Number of samples to add per pixel.
        max_depth: Bounce budget per path.
        jitter: Randomize the sample position inside each pixel; when False
            every sample goes through the pixel center.

    Raises:
        RuntimeError: If the render target or the camera has not been set up.
        ValueError: If num_samples or max_depth is negative.
    """
    _check_render_target_initialized()
    _check_camera_ready()
    if num_samples < 0:
        raise ValueError(f"num_samples must be non-negative, got {num_samples}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth, int(jitter))


def get_total_samples() -> int:
    """Samples accumulated per pixel (read from pixel (0, 0)).

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_sample_count[0, 0])


def _to_raster(buffer: np.ndarray, width: int, height: int) -> np.ndarray:
    """Crop a (W, H, ...) buffer and reorder it to (H, W, ...) with row 0 on top."""
    image = buffer[:width, :height]
    image = np.swapaxes(image, 0, 1)
    # j = 0 is the bottom row in the buffer, images use top-left origin
    return np.flipud(image)


def get_color_sum_numpy() -> npt.NDArray[np.float32]:
    """Get the accumulated linear color sums as (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return np.ascontiguousarray(_to_raster(_color_sum.to_numpy(), width, height))


def get_sample_count_numpy() -> npt.NDArray[np.int32]:
    """Get the per-pixel sample counts as (height, width), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    width, height = get_image_dimensions()
    return np.ascontiguousarray(_to_raster(_sample_count.to_numpy(), width, height))
