"""Preview module for output and visualization.

Components:
    tonemap: Sample averaging, gamma 2, clamping, quantization, raster order
    export: Pixel sinks (PPM, PNG) and file export
    display: Matplotlib-based static preview

Example:
    >>> from pathtracer.preview import PPMSink, save_png
    >>> renderer.render()
    >>> with open("out.ppm", "w") as f:
    ...     renderer.emit(PPMSink(f))
    >>> save_png(renderer, "out.png")
"""

from pathtracer.preview.display import show_preview
from pathtracer.preview.export import (
    PixelSink,
    PNGSink,
    PPMSink,
    compute_rmse,
    image_to_uint8,
    save_png,
    save_png_from_array,
    write_ppm,
)
from pathtracer.preview.tonemap import (
    DISPLAY_MAX,
    average_samples,
    clamp_display,
    gamma2,
    iter_raster,
    quantize,
    tonemap,
)

__all__ = [
    # Tone mapping
    "DISPLAY_MAX",
    "average_samples",
    "gamma2",
    "clamp_display",
    "tonemap",
    "quantize",
    "iter_raster",
    # Export
    "PixelSink",
    "PPMSink",
    "PNGSink",
    "save_png",
    "save_png_from_array",
    "write_ppm",
    "image_to_uint8",
    "compute_rmse",
    # Display
    "show_preview",
]
