"""
Euclidean RGB distance metric.

Distances are truncated to integers: ``floor(sqrt(dr² + dg² + db²))``.
Two pairs with different exact distances can compare equal after
truncation, and grouping thresholds are evaluated against the truncated
value, so every stage goes through the helpers in this module.
"""
import math
from typing import Sequence

import numpy as np

# Nearest-centroid ties resolve to the highest-indexed candidate.
PREFER_LATER_ON_TIE = True

# Largest possible truncated distance, between black and white.
MAX_DISTANCE = math.isqrt(3 * 255 * 255)


def dist(c1: Sequence[int], c2: Sequence[int]) -> int:
    """Truncated Euclidean distance between two RGB colors."""
    d1 = abs(int(c1[0]) - int(c2[0]))
    d2 = abs(int(c1[1]) - int(c2[1]))
    d3 = abs(int(c1[2]) - int(c2[2]))
    return math.isqrt(d1 * d1 + d2 * d2 + d3 * d3)


def squared_distances(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """
    Exact squared distances between every color and every palette entry.

    Args:
        colors: ``(N, 3)`` array of colors
        palette: ``(K, 3)`` array of colors

    Returns:
        ``(N, K)`` int64 array
    """
    diff = colors.astype(np.int64)[:, None, :] - palette.astype(np.int64)[None, :, :]
    return np.einsum("nkc,nkc->nk", diff, diff)


def distance_matrix(colors: np.ndarray, palette: np.ndarray) -> np.ndarray:
    """Truncated distances between every color and every palette entry, ``(N, K)``."""
    d2 = squared_distances(colors, palette)
    # Inputs are bounded by 3 * 255², far inside float64's exact range.
    return np.floor(np.sqrt(d2)).astype(np.int64)


def nearest_index(distances: np.ndarray) -> np.ndarray:
    """
    Column index of the minimal distance in each row.

    Ties follow ``PREFER_LATER_ON_TIE``: when several columns share the
    minimum the last one is chosen.
    """
    if PREFER_LATER_ON_TIE:
        k = distances.shape[1]
        return (k - 1) - np.argmin(distances[:, ::-1], axis=1)
    return np.argmin(distances, axis=1)


def first_within(distances: np.ndarray, threshold: int) -> np.ndarray:
    """
    Column index of the first entry strictly closer than ``threshold``.

    Rows with no such entry get ``-1``.
    """
    within = distances < threshold
    first = np.argmax(within, axis=1)
    return np.where(within.any(axis=1), first, -1)
