"""
Recolor a pixel buffer against a palette.

Both quantizers work on the distinct colors of the buffer and map the
result back through the inverse index, so each color is resolved once no
matter how many pixels share it. The source buffer is never modified.
"""
import numpy as np
from loguru import logger

from .distance import distance_matrix, first_within, nearest_index
from .histogram import unique_colors
from .models import Palette, PixelBuffer

DEFAULT_CHUNK_SIZE = 65536


def _palette_array(palette: Palette) -> np.ndarray:
    return np.array([entry.color for entry in palette], dtype=np.uint8).reshape(-1, 3)


def quantize_first_match(buffer: PixelBuffer, palette: Palette, distance: int,
                         chunk_size: int = DEFAULT_CHUNK_SIZE) -> PixelBuffer:
    """
    Recolor each pixel to the first palette color closer than ``distance``.

    The palette is scanned in its given (weight-descending) order, mirroring
    the grouper's first-match rule. Pixels with no color in range keep their
    original value.
    """
    colors, _, inverse = unique_colors(buffer.pixels)
    mapped = colors.copy()
    if len(palette):
        targets = _palette_array(palette)
        for start in range(0, len(colors), chunk_size):
            block = colors[start:start + chunk_size]
            match = first_within(distance_matrix(block, targets), distance)
            hit = match >= 0
            mapped[start:start + chunk_size][hit] = targets[match[hit]]

    kept = int(np.all(mapped == colors, axis=1).sum())
    logger.debug(f"First-match quantization: {len(colors)} colors, {kept} unchanged")
    return buffer.with_pixels(mapped[inverse])


def quantize_nearest(buffer: PixelBuffer, palette: Palette,
                     chunk_size: int = DEFAULT_CHUNK_SIZE) -> PixelBuffer:
    """Recolor each pixel to its nearest palette color (later entries win ties)."""
    if not len(palette):
        raise ValueError("Cannot quantize against an empty palette")

    colors, _, inverse = unique_colors(buffer.pixels)
    targets = _palette_array(palette)
    mapped = np.empty_like(colors)
    for start in range(0, len(colors), chunk_size):
        block = colors[start:start + chunk_size]
        mapped[start:start + chunk_size] = targets[nearest_index(distance_matrix(block, targets))]

    logger.debug(f"Nearest quantization: {len(colors)} colors onto {len(targets)} centroids")
    return buffer.with_pixels(mapped[inverse])

