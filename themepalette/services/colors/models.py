"""
Color data model shared by the grouping, clustering and rendering stages.
"""
from dataclasses import dataclass
from typing import List, NamedTuple, Tuple

import numpy as np

Color = Tuple[int, int, int]


def rgb_to_hex(color) -> str:
    """Convert an RGB triple to a lowercase ``#rrggbb`` string."""
    r, g, b = [int(x) for x in color]
    return f"#{r:02x}{g:02x}{b:02x}"


def hex_to_rgb(hex_color: str) -> Color:
    """Convert hex color string to RGB tuple."""
    hex_color = hex_color.lstrip('#')
    return tuple(int(hex_color[i:i+2], 16) for i in (0, 2, 4))


def as_color(values) -> Color:
    """Normalize any 3-element sequence (numpy row, list) to a Color tuple."""
    r, g, b = [int(x) for x in values]
    return (r, g, b)


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """
    Flat row-major RGB pixel buffer.

    ``pixels`` has shape ``(width * height, 3)`` and dtype ``uint8``. Stages
    treat it as read-only and return new buffers for their outputs.
    """
    width: int
    height: int
    pixels: np.ndarray

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Invalid buffer dimensions: {self.width}×{self.height}")
        if self.pixels.shape != (self.width * self.height, 3):
            raise ValueError(
                f"Pixel array shape {self.pixels.shape} does not match "
                f"{self.width}×{self.height}"
            )
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")

    @classmethod
    def from_array(cls, rgb: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an ``(height, width, 3)`` RGB array."""
        if rgb.ndim != 3 or rgb.shape[2] != 3:
            raise ValueError(f"Expected (H, W, 3) RGB array, got shape {rgb.shape}")
        height, width = rgb.shape[:2]
        pixels = np.ascontiguousarray(rgb, dtype=np.uint8).reshape(-1, 3).copy()
        return cls(width=width, height=height, pixels=pixels)

    @classmethod
    def from_colors(cls, width: int, height: int, colors: List[Color]) -> "PixelBuffer":
        """Build a buffer from a row-major list of colors."""
        pixels = np.array(colors, dtype=np.uint8).reshape(-1, 3)
        return cls(width=width, height=height, pixels=pixels)

    def to_array(self) -> np.ndarray:
        """Return an ``(height, width, 3)`` view of the pixels."""
        return self.pixels.reshape(self.height, self.width, 3)

    def copy(self) -> "PixelBuffer":
        """Return a buffer that owns its own copy of the pixels."""
        return PixelBuffer(self.width, self.height, self.pixels.copy())

    def with_pixels(self, pixels: np.ndarray) -> "PixelBuffer":
        """Return a new buffer of the same size holding ``pixels``."""
        return PixelBuffer(self.width, self.height, pixels)

    def __len__(self) -> int:
        return self.width * self.height


class HistogramEntry(NamedTuple):
    """A color and the number of pixels exactly equal to it."""
    color: Color
    count: int


class PaletteColor(NamedTuple):
    """One ranked palette color and its weight (pixel count)."""
    color: Color
    weight: int


Palette = List[PaletteColor]


@dataclass
class Group:
    """Distance-threshold group: first-seen representative and merged weight."""
    representative: Color
    weight: int


@dataclass
class Centroid:
    """K-means centroid color and the number of pixels assigned to it."""
    color: Color
    count: int = 0
