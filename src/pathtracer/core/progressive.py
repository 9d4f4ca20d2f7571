"""Progressive renderer for iterative sample accumulation.

Wraps the core integrator with:
- Settings-driven renders (samples per pixel, bounce budget, seed, jitter)
- Batch rendering with progress callbacks or a generator
- Reset and resize, which reseed the per-pixel random streams
- Raster output to a pixel sink, top row first

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from pathtracer.config import RenderSettings
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>> from pathtracer.scene.scenes import scene_sphere
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera = scene_sphere()
    >>> setup_camera(camera)
    >>>
    >>> renderer = ProgressiveRenderer(RenderSettings(width=300, samples_per_pixel=64))
    >>> renderer.render()
    >>> image = renderer.get_image_numpy()
"""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pathtracer.config import RenderSettings
from pathtracer.core.integrator import (
    clear_render_target,
    get_color_sum_numpy,
    get_sample_count_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from pathtracer.preview.export import PixelSink, save_png_from_array, write_ppm
from pathtracer.preview.tonemap import iter_raster, quantize, tonemap

logger = logging.getLogger(__name__)

# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """A progressive renderer that accumulates samples over time.

    The renderer keeps its settings and delegates to the global integrator
    buffers (which are Taichi fields). A camera and a scene must be set up
    before rendering.

    Attributes:
        settings: The RenderSettings this renderer was built from.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        """Initialize the renderer and its render target.

        Args:
            settings: Render parameters. Defaults to RenderSettings().

        Raises:
            ValueError: If the settings are invalid.
        """
        self._settings = settings if settings is not None else RenderSettings()
        self._settings.validate()
        setup_render_target(self._settings.width, self._settings.height, self._settings.seed)
        logger.debug("Render target %dx%d, seed %d", self.width, self.height, self._settings.seed)

    @property
    def settings(self) -> RenderSettings:
        return self._settings

    @property
    def width(self) -> int:
        return self._settings.width

    @property
    def height(self) -> int:
        return self._settings.height

    @property
    def sample_count(self) -> int:
        """Current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Clear the accumulator and reseed the random streams.

        A reset followed by the same render reproduces the same image.
        """
        setup_render_target(self.width, self.height, self._settings.seed)

    def clear(self) -> None:
        """Clear the accumulator without reseeding."""
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and reset the accumulator.

        Raises:
            ValueError: If dimensions are invalid.
        """
        setup_render_target(width, height, self._settings.seed)
        self._settings.width = width
        self._settings.height = height

    def _batches(self, num_samples: int | None, batch_size: int) -> Generator[tuple[int, int], None, None]:
        if num_samples is None:
            num_samples = self._settings.samples_per_pixel
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples
        remaining = num_samples
        while remaining > 0:
            batch = min(batch_size, remaining)
            render_image(batch, max_depth=self._settings.max_depth, jitter=self._settings.jitter)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def render(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Accumulate samples into the existing buffer.

        Args:
            num_samples: Samples per pixel to add. Defaults to
                settings.samples_per_pixel.
            batch_size: Samples rendered between callbacks.
            callback: Called after each batch with
                (current_total_samples, target_total_samples).

        Raises:
            RuntimeError: If the camera has not been set up.
            ValueError: If batch_size is not positive.

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(100, batch_size=10, callback=progress)
        """
        for current, target in self._batches(num_samples, batch_size):
            if callback is not None:
                callback(current, target)
        logger.info("Rendered %dx%d at %d spp", self.width, self.height, self.sample_count)

    def render_progressive(
        self,
        num_samples: int | None = None,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples, yielding progress after each batch.

        Yields:
            Tuple of (current_total_samples, target_total_samples).

        Example:
            >>> for current, target in renderer.render_progressive(100, batch_size=10):
            ...     print(f"Progress: {current}/{target} samples")
        """
        yield from self._batches(num_samples, batch_size)

    def get_color_sum(self) -> npt.NDArray[np.float32]:
        """Linear color sums as (height, width, 3), top row first."""
        return get_color_sum_numpy()

    def get_image_numpy(self) -> npt.NDArray[np.float64]:
        """Get the tone-mapped image as (height, width, 3) in [0, 0.999].

        Raises:
            ValueError: If no samples have been rendered yet.
        """
        return tonemap(get_color_sum_numpy(), get_sample_count_numpy())

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the tone-mapped image quantized to 8 bits."""
        return quantize(self.get_image_numpy())

    def emit(self, sink: PixelSink) -> None:
        """Send every tone-mapped pixel to a sink, top row to bottom row."""
        image = self.get_image_numpy()
        sink.begin(self.width, self.height)
        for _, _, pixel in iter_raster(image):
            sink.write_pixel(pixel)
        sink.end()

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image as PNG or PPM, chosen by file extension.

        Raises:
            ValueError: If the extension is not .png or .ppm.
        """
        suffix = Path(filepath).suffix.lower()
        if suffix == ".png":
            save_png_from_array(self.get_image_numpy(), filepath)
        elif suffix == ".ppm":
            write_ppm(self.get_image_numpy(), filepath)
        else:
            raise ValueError(f"Unsupported image format: {suffix!r} (expected .png or .ppm)")

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )
