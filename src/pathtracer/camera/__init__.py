"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at camera with vertical field of view and depth of field

The camera state lives in Taichi fields written by ``setup_camera`` and is
read by ``get_ray`` / ``get_ray_for_pixel`` inside kernels.
"""

from .thin_lens import (
    ThinLensCamera,
    get_camera_info,
    get_ray,
    get_ray_for_pixel,
    is_camera_ready,
    reset_camera,
    sample_ray,
    setup_camera,
)

__all__ = [
    "ThinLensCamera",
    "setup_camera",
    "reset_camera",
    "is_camera_ready",
    "get_ray",
    "get_ray_for_pixel",
    "get_camera_info",
    "sample_ray",
]
