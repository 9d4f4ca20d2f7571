"""Image sinks and export utilities for rendered images.

A sink receives the tone-mapped color of every pixel in raster order (top
row to bottom row, left to right) and encodes it into a concrete format.

Supported formats:
    - PPM (plain-text P3)
    - PNG (8-bit via Pillow)

Example:
    >>> from pathtracer.preview.export import PPMSink, save_png
    >>> from pathtracer.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(settings)
    >>> renderer.render()
    >>> with open("image.ppm", "w") as f:
    ...     renderer.emit(PPMSink(f))
    >>> save_png(renderer, "image.png")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from pathtracer.preview.tonemap import iter_raster, quantize

if TYPE_CHECKING:
    from pathtracer.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)


class PixelSink(Protocol):
    """Consumer of tone-mapped pixels in raster order."""

    def begin(self, width: int, height: int) -> None: ...

    def write_pixel(self, color: npt.NDArray[np.floating]) -> None: ...

    def end(self) -> None: ...


class PPMSink:
    """Write pixels as a plain-text PPM (P3) image.

    Each pixel becomes one ``"r g b"`` line of quantized values.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream
        self._expected = 0
        self._written = 0

    def begin(self, width: int, height: int) -> None:
        self._expected = width * height
        self._written = 0
        self._stream.write(f"P3\n{width} {height}\n255\n")

    def write_pixel(self, color: npt.NDArray[np.floating]) -> None:
        r, g, b = quantize(np.asarray(color)).tolist()
        self._stream.write(f"{r} {g} {b}\n")
        self._written += 1

    def end(self) -> None:
        if self._written != self._expected:
            raise RuntimeError(f"PPM expected {self._expected} pixels, got {self._written}")
        self._stream.flush()


class PNGSink:
    """Collect pixels and save them as an 8-bit PNG when the image ends."""

    def __init__(self, filepath: str | Path) -> None:
        self._filepath = Path(filepath)
        self._pixels: list[npt.NDArray[np.floating]] = []
        self._width = 0
        self._height = 0

    def begin(self, width: int, height: int) -> None:
        self._width = width
        self._height = height
        self._pixels = []

    def write_pixel(self, color: npt.NDArray[np.floating]) -> None:
        self._pixels.append(np.asarray(color, dtype=np.float64))

    def end(self) -> None:
        image = np.asarray(self._pixels, dtype=np.float64).reshape(self._height, self._width, 3)
        save_png_from_array(image, self._filepath)


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Quantize a tone-mapped (H, W, 3) image to uint8."""
    return quantize(image)


def save_png_from_array(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save a tone-mapped (H, W, 3) image as a PNG file.

    Args:
        image: Display values in [0, 1] with row 0 at the top.
        filepath: Output file path (should end in .png).
    """
    pil_image = PILImage.fromarray(image_to_uint8(image))
    pil_image.save(filepath)
    logger.info("Saved %dx%d PNG to %s", image.shape[1], image.shape[0], filepath)


def save_png(renderer: ProgressiveRenderer, filepath: str | Path) -> None:
    """Save the renderer's current tone-mapped image as a PNG file."""
    save_png_from_array(renderer.get_image_numpy(), filepath)


def write_ppm(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Write a tone-mapped (H, W, 3) image as a P3 PPM file."""
    height, width = image.shape[:2]
    with open(filepath, "w", encoding="ascii") as f:
        sink = PPMSink(f)
        sink.begin(width, height)
        for _, _, pixel in iter_raster(image):
            sink.write_pixel(pixel)
        sink.end()
    logger.info("Saved %dx%d PPM to %s", width, height, filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
