"""Tone mapping from accumulated linear radiance to display values.

The display pipeline for one pixel is:

1. Average: divide the accumulated color sum by the sample count
2. Gamma 2: take the square root of each channel
3. Clamp each channel to [0, 0.999]
4. Quantize: ``int(256 * c)``, which lands in [0, 255]

The clamp upper bound keeps the quantized value from reaching 256.

Images are (height, width, 3) arrays with row 0 at the top; ``iter_raster``
walks them top row to bottom row, left to right within a row.
"""

from collections.abc import Iterator

import numpy as np
import numpy.typing as npt

# Largest display value before quantization
DISPLAY_MAX = 0.999


def average_samples(
    color_sum: npt.NDArray[np.floating],
    sample_count: npt.NDArray[np.integer] | int,
) -> npt.NDArray[np.float64]:
    """Divide accumulated color sums by their sample counts.

    Args:
        color_sum: Linear color sums of shape (H, W, 3) (or (3,) for one pixel).
        sample_count: Per-pixel counts of shape (H, W), or one count for all.

    Raises:
        ValueError: If any pixel has no samples.
    """
    counts = np.asarray(sample_count)
    if np.any(counts <= 0):
        raise ValueError("Cannot average a pixel with no samples")
    sums = np.asarray(color_sum, dtype=np.float64)
    if counts.ndim == 0:
        return sums / float(counts)
    return sums / counts[..., np.newaxis].astype(np.float64)


def gamma2(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    """Gamma 2 encoding (square root), with negatives treated as black."""
    return np.sqrt(np.maximum(np.asarray(image, dtype=np.float64), 0.0))


def clamp_display(image: npt.NDArray[np.floating]) -> npt.NDArray[np.float64]:
    return np.clip(np.asarray(image, dtype=np.float64), 0.0, DISPLAY_MAX)


def tonemap(
    color_sum: npt.NDArray[np.floating],
    sample_count: npt.NDArray[np.integer] | int,
) -> npt.NDArray[np.float64]:
    """Full tone map: average, gamma 2, clamp to [0, 0.999].

    Example:
        >>> tonemap(np.array([2.0, 0.5, 0.0]), 2)
        array([0.999, 0.5  , 0.   ])
    """
    return clamp_display(gamma2(average_samples(color_sum, sample_count)))


def quantize(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert tone-mapped values to 8-bit with ``int(256 * c)``.

    Values are clamped to [0, 0.999] first, so the result is in [0, 255].
    """
    return (256.0 * clamp_display(image)).astype(np.uint8)


def iter_raster(image: npt.NDArray) -> Iterator[tuple[int, int, npt.NDArray]]:
    """Yield (row, column, pixel) top row to bottom row, left to right.

    Args:
        image: Array of shape (H, W, C) with row 0 at the top.
    """
    height, width = image.shape[:2]
    for row in range(height):
        for col in range(width):
            yield row, col, image[row, col]
