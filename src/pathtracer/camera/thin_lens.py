"""Thin-lens camera model with depth of field.

The camera builds an orthonormal basis (u, v, w) from the view parameters:
- w: points from lookat toward lookfrom (opposite view direction)
- u: points right in the image plane
- v: points up in the image plane

The viewport lies on the focal plane, ``focus_dist`` in front of the eye:

    viewport_height = 2 * tan(vfov / 2) * focus_dist
    viewport_width  = aspect_ratio * viewport_height

Each ray starts at a random point on a lens disk of radius ``aperture / 2``
spanned by (u, v) and is aimed at its point on the focal plane. Points on the
focal plane therefore stay sharp whatever the lens sample, while everything
nearer or farther blurs. An aperture of 0 gives a pinhole camera.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import ThinLensCamera, setup_camera, get_ray
    >>> camera = ThinLensCamera(
    ...     lookfrom=(0.0, 2.0, 5.0),
    ...     lookat=(0.0, 1.0, 0.0),
    ...     vfov=43.0,
    ...     aperture=0.05,
    ...     focus_dist=10.0,
    ... )
    >>> setup_camera(camera)
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5, 0)  # Ray through image center on stream 0
"""

import logging
import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt
import taichi as ti

from pathtracer.config import DEFAULT_ASPECT_RATIO
from pathtracer.core.ray import Ray, make_ray, normalize_host, random_in_unit_disk, vec3
from pathtracer.core.sampler import random_float

logger = logging.getLogger(__name__)

# vup closer than this to the view direction leaves the basis undefined
_PARALLEL_TOLERANCE = 1e-8


# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ThinLensCamera:
    """Configuration for a thin-lens (depth of field) camera.

    Attributes:
        lookfrom: Camera position in world space (x, y, z).
        lookat: Point the camera is looking at in world space (x, y, z).
        vup: Up direction vector for camera orientation (typically (0, 1, 0)).
        vfov: Vertical field of view in degrees, in (0, 180).
        aspect_ratio: Width divided by height of the output image.
        aperture: Lens diameter; 0 disables depth of field.
        focus_dist: Distance from the eye to the plane of perfect focus.

    Raises:
        ValueError: On construction, if the configuration cannot define a
            camera (see ``validate``).
    """

    lookfrom: tuple[float, float, float]
    lookat: tuple[float, float, float]
    vup: tuple[float, float, float] = (0.0, 1.0, 0.0)
    vfov: float = 43.0
    aspect_ratio: float = DEFAULT_ASPECT_RATIO
    aperture: float = 0.05
    focus_dist: float = 10.0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject configurations that would produce NaN rays.

        Raises:
            ValueError: If lookfrom equals lookat, vup is zero or parallel to
                the view direction, vfov is outside (0, 180), aspect_ratio or
                focus_dist is not positive, or aperture is negative.
        """
        if not 0.0 < self.vfov < 180.0:
            raise ValueError(f"vfov must be in (0, 180) degrees, got {self.vfov}")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.aperture < 0.0:
            raise ValueError(f"aperture must be non-negative, got {self.aperture}")
        if self.focus_dist <= 0.0:
            raise ValueError(f"focus_dist must be positive, got {self.focus_dist}")
        # Raises on a zero view direction or a degenerate up vector
        self.basis()

    def basis(self) -> dict[str, npt.NDArray[np.float64]]:
        """Compute the camera frame and focal-plane viewport on the host.

        Returns:
            Dictionary with origin, u, v, w, horizontal, vertical,
            lower_left (NumPy float64 vectors).

        Raises:
            ValueError: If the view direction or the up vector is degenerate.
        """
        lookfrom = np.asarray(self.lookfrom, dtype=np.float64)
        lookat = np.asarray(self.lookat, dtype=np.float64)
        vup = np.asarray(self.vup, dtype=np.float64)

        # w points from lookat toward lookfrom (backward)
        w = normalize_host(lookfrom - lookat, "view direction (lookfrom - lookat)")

        # u points right (perpendicular to w and vup)
        u = np.cross(vup, w)
        norm_u = float(np.linalg.norm(u))
        if norm_u < _PARALLEL_TOLERANCE:
            raise ValueError(
                f"vup {tuple(vup.tolist())} is zero or parallel to the view direction"
            )
        u = u / norm_u

        # v points up in the camera's frame
        v = np.cross(w, u)

        theta = math.radians(self.vfov)
        viewport_height = 2.0 * math.tan(theta / 2.0) * self.focus_dist
        viewport_width = self.aspect_ratio * viewport_height

        horizontal = viewport_width * u
        vertical = viewport_height * v
        lower_left = lookfrom - horizontal / 2.0 - vertical / 2.0 - self.focus_dist * w

        return {
            "origin": lookfrom,
            "u": u,
            "v": v,
            "w": w,
            "horizontal": horizontal,
            "vertical": vertical,
            "lower_left": lower_left,
        }

    @property
    def lens_radius(self) -> float:
        return self.aperture / 2.0


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f32, shape=())

# Orthonormal basis vectors
_camera_u = ti.Vector.field(3, dtype=ti.f32, shape=())  # Right
_camera_v = ti.Vector.field(3, dtype=ti.f32, shape=())  # Up
_camera_w = ti.Vector.field(3, dtype=ti.f32, shape=())  # Backward (opposite view)

# Focal-plane viewport
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f32, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f32, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f32, shape=())

_lens_radius = ti.field(dtype=ti.f32, shape=())
_camera_ready = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side, called once per camera configuration)
# =============================================================================


def setup_camera(camera: ThinLensCamera) -> None:
    """Upload a camera configuration to the Taichi camera state.

    Must be called before rendering.

    Raises:
        ValueError: If the configuration is invalid. Fields are left
            untouched in that case.
    """
    camera.validate()
    frame = camera.basis()

    _camera_origin[None] = frame["origin"].tolist()
    _camera_u[None] = frame["u"].tolist()
    _camera_v[None] = frame["v"].tolist()
    _camera_w[None] = frame["w"].tolist()
    _viewport_horizontal[None] = frame["horizontal"].tolist()
    _viewport_vertical[None] = frame["vertical"].tolist()
    _lower_left_corner[None] = frame["lower_left"].tolist()
    _lens_radius[None] = camera.lens_radius
    _camera_ready[None] = 1

    logger.debug(
        "Camera set up: lookfrom=%s lookat=%s vfov=%.1f aperture=%.3f focus_dist=%.2f",
        camera.lookfrom,
        camera.lookat,
        camera.vfov,
        camera.aperture,
        camera.focus_dist,
    )


def reset_camera() -> None:
    """Mark the camera state as not configured."""
    _camera_ready[None] = 0


def is_camera_ready() -> bool:
    return bool(_camera_ready[None])


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(s: ti.f32, t: ti.f32, stream: ti.i32) -> Ray:
    """Generate a ray through normalized focal-plane coordinates (s, t).

    - s = 0: left edge, s = 1: right edge
    - t = 0: bottom edge, t = 1: top edge

    Args:
        s: Horizontal coordinate (left to right).
        t: Vertical coordinate (bottom to top).
        stream: Random stream used for the lens sample.

    Returns:
        A Ray from a point on the lens toward the focal-plane point. The
        direction is not normalized.
    """
    rd = _lens_radius[None] * random_in_unit_disk(stream)
    offset = _camera_u[None] * rd.x + _camera_v[None] * rd.y

    origin = _camera_origin[None] + offset
    target = (
        _lower_left_corner[None] + s * _viewport_horizontal[None] + t * _viewport_vertical[None]
    )
    return make_ray(origin, target - origin)


@ti.func
def get_ray_for_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    stream: ti.i32,
    jitter: ti.i32,
) -> Ray:
    """Generate a camera ray for one sample of a pixel.

    With jitter the sample lands uniformly inside the pixel; without it the
    pixel center is used.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        stream: Random stream of the pixel.
        jitter: 1 for a random sub-pixel offset, 0 for the pixel center.
    """
    offset_u = 0.5
    offset_v = 0.5
    if jitter != 0:
        offset_u = random_float(stream)
        offset_v = random_float(stream)

    s = (ti.cast(pixel_i, ti.f32) + offset_u) / ti.cast(width, ti.f32)
    t = (ti.cast(pixel_j, ti.f32) + offset_v) / ti.cast(height, ti.f32)

    return get_ray(s, t, stream)


# =============================================================================
# Utility Functions
# =============================================================================

_sample_origin = ti.Vector.field(3, dtype=ti.f32, shape=())
_sample_direction = ti.Vector.field(3, dtype=ti.f32, shape=())


@ti.kernel
def _sample_ray_kernel(s: ti.f32, t: ti.f32, stream: ti.i32):
    ray = get_ray(s, t, stream)
    _sample_origin[None] = ray.origin
    _sample_direction[None] = ray.direction


def sample_ray(s: float, t: float, stream: int = 0) -> tuple[np.ndarray, np.ndarray]:
    """Generate one camera ray from Python (tests and debugging).

    Returns:
        Tuple (origin, direction) as NumPy arrays.

    Raises:
        RuntimeError: If setup_camera has not been called.
    """
    if not is_camera_ready():
        raise RuntimeError("Camera not set up; call setup_camera() first")
    _sample_ray_kernel(s, t, stream)
    return _sample_origin.to_numpy(), _sample_direction.to_numpy()


def get_camera_info() -> dict[str, tuple[float, ...] | float]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with origin, u, v, w, horizontal, vertical, lower_left and
        lens_radius.
    """

    def _read(f) -> tuple[float, ...]:
        return tuple(float(x) for x in f.to_numpy())

    return {
        "origin": _read(_camera_origin),
        "u": _read(_camera_u),
        "v": _read(_camera_v),
        "w": _read(_camera_w),
        "horizontal": _read(_viewport_horizontal),
        "vertical": _read(_viewport_vertical),
        "lower_left": _read(_lower_left_corner),
        "lens_radius": float(_lens_radius[None]),
    }
