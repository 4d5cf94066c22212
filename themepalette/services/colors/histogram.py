"""
Exact-color histogram and simple aggregates over a pixel buffer.
"""
from typing import List, Optional, Tuple

import numpy as np
from loguru import logger

from .models import Color, HistogramEntry, Palette, PaletteColor, PixelBuffer, as_color


def pack_colors(pixels: np.ndarray) -> np.ndarray:
    """Pack ``(N, 3)`` uint8 colors into ``0xRRGGBB`` integer keys."""
    p = pixels.astype(np.uint32)
    return (p[:, 0] << 16) | (p[:, 1] << 8) | p[:, 2]


def unpack_colors(keys: np.ndarray) -> np.ndarray:
    """Inverse of :func:`pack_colors`, returns ``(N, 3)`` uint8."""
    keys = keys.astype(np.uint32)
    return np.stack([(keys >> 16) & 0xFF, (keys >> 8) & 0xFF, keys & 0xFF], axis=1).astype(np.uint8)


def unique_colors(pixels: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Distinct colors of a pixel array.

    Returns:
        Tuple of (colors ``(U, 3)`` uint8, counts ``(U,)``, inverse ``(N,)``)
        where ``colors[inverse]`` reconstructs ``pixels``.
    """
    keys, inverse, counts = np.unique(pack_colors(pixels), return_inverse=True, return_counts=True)
    return unpack_colors(keys), counts.astype(np.int64), inverse.reshape(-1)


def build_histogram(buffer: PixelBuffer) -> List[HistogramEntry]:
    """
    Count the pixels of every distinct color.

    The result is sorted ascending by count. Equal counts are ordered by
    descending color so that walking the list in reverse visits them in
    ascending color order, which keeps grouping reproducible.
    """
    colors, counts, _ = unique_colors(buffer.pixels)
    entries = [HistogramEntry(as_color(c), int(n)) for c, n in zip(colors, counts)]
    entries.sort(key=lambda e: (e.count, tuple(-x for x in e.color)))
    logger.debug(f"Histogram built: {len(entries)} distinct colors over {len(buffer)} pixels")
    return entries


def mean_color(buffer: PixelBuffer) -> Color:
    """Per-channel mean using truncating integer division."""
    sums = buffer.pixels.sum(axis=0, dtype=np.int64)
    return as_color(sums // len(buffer))


def most_common(histogram: List[HistogramEntry], results: Optional[int] = None) -> Palette:
    """Top exact colors in descending count order."""
    ranked = [PaletteColor(e.color, e.count) for e in reversed(histogram)]
    if results is not None:
        ranked = ranked[:results]
    return ranked
