"""Render settings shared by the render driver and the example scripts."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

# Preallocated render target size (fields are sized once to avoid recompiling kernels)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

DEFAULT_ASPECT_RATIO = 3.0 / 2.0


@dataclass
class RenderSettings:
    """Plain numeric parameters for a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels. When 0, derived from width and
            aspect_ratio.
        samples_per_pixel: Number of camera rays averaged per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Seed for the per-pixel random streams.
        jitter: Randomize the sample position inside each pixel. When False
            every sample goes through the pixel center.
        aspect_ratio: Used only to derive height.
    """

    width: int = 800
    height: int = 0
    samples_per_pixel: int = 500
    max_depth: int = 50
    seed: int = 0
    jitter: bool = True
    aspect_ratio: float = DEFAULT_ASPECT_RATIO

    def __post_init__(self) -> None:
        if self.height == 0 and self.aspect_ratio > 0:
            self.height = max(1, int(self.width / self.aspect_ratio))
        self.validate()

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any value is out of range.
        """
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image dimensions must be positive, got {self.width}x{self.height}")
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.seed < 0 or self.seed > 0xFFFFFFFF:
            raise ValueError(f"seed must fit in 32 bits, got {self.seed}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RenderSettings:
        """Build settings from a dictionary, ignoring unknown keys."""
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)
