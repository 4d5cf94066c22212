"""
Swatch Chart Rendering

Draws two palettes as stacked rows of solid color blocks so the grouped
and k-means results can be compared side by side.
"""
from typing import Sequence

import numpy as np
from loguru import logger

from .models import Color, Palette, PixelBuffer


def validate_swatch_params(results: int, block_width: int, block_height: int) -> None:
    """Validate swatch rendering parameters."""
    if results <= 0:
        raise ValueError("results must be positive")

    if block_width <= 0 or block_height <= 0:
        raise ValueError(f"block size must be positive, got {block_width}×{block_height}")


def render_swatch_rows(rows: Sequence[Palette], results: int,
                       block_width: int, block_height: int,
                       background: Color = (0, 0, 0)) -> PixelBuffer:
    """
    Render palettes as rows of ``results`` color blocks.

    Args:
        rows: One palette per row, each in display order
        results: Number of blocks per row; longer palettes are truncated
        block_width: Width of each block in pixels
        block_height: Height of each block in pixels
        background: Fill for blocks without a palette entry

    Returns:
        Buffer of ``results * block_width`` by ``len(rows) * block_height``
    """
    validate_swatch_params(results, block_width, block_height)

    img_width = results * block_width
    img_height = len(rows) * block_height
    img = np.empty((img_height, img_width, 3), dtype=np.uint8)
    img[:, :] = background

    for row, palette in enumerate(rows):
        y_start = row * block_height
        y_end = y_start + block_height
        for i, entry in enumerate(palette[:results]):
            x_start = i * block_width
            x_end = x_start + block_width
            img[y_start:y_end, x_start:x_end] = entry.color

        if len(palette) < results:
            logger.debug(f"Swatch row {row}: {len(palette)} of {results} blocks filled")

    return PixelBuffer.from_array(img)


def render_swatch_chart(grouped: Palette, kmeans: Palette, results: int,
                        block_width: int, block_height: int,
                        background: Color = (0, 0, 0)) -> PixelBuffer:
    """
    Render the comparison chart: grouped colors on top, k-means below.

    The chart size depends only on ``results`` and the block size, never on
    the source image.
    """
    logger.debug(f"Rendering swatch chart with {results} blocks of {block_width}×{block_height}")
    return render_swatch_rows([grouped, kmeans], results, block_width, block_height, background)

