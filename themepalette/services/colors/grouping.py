"""
Greedy distance-threshold grouping of the exact-color histogram.

Colors are visited in descending frequency. Each color joins the first
existing group (in creation order) whose representative is closer than the
threshold, otherwise it starts a new group and becomes its representative.
First match wins even when a later group would be closer, so the visiting
order decides both the representatives and how pixel mass is distributed.
"""
from typing import List, Optional

import numpy as np
from loguru import logger

from .models import Group, HistogramEntry, Palette, PaletteColor


def group_histogram(histogram: List[HistogramEntry], distance: int) -> List[Group]:
    """
    Run the single-pass grouper.

    Args:
        histogram: Histogram sorted ascending by count (consumed in reverse)
        distance: Merge threshold; a color merges when ``dist < distance``

    Returns:
        Groups in creation order
    """
    if distance < 0:
        raise ValueError(f"distance must be non-negative, got {distance}")

    # floor(sqrt(x)) < d  <=>  x < d*d for non-negative integers
    limit = int(distance) * int(distance)
    representatives = np.zeros((len(histogram), 3), dtype=np.int64)
    groups: List[Group] = []

    for entry in reversed(histogram):
        color = np.array(entry.color, dtype=np.int64)
        n = len(groups)
        if n:
            diff = representatives[:n] - color
            within = np.flatnonzero((diff * diff).sum(axis=1) < limit)
            if within.size:
                groups[within[0]].weight += entry.count
                continue
        representatives[n] = color
        groups.append(Group(representative=entry.color, weight=entry.count))

    logger.debug(f"Grouped {len(histogram)} colors into {len(groups)} groups (distance={distance})")
    return groups


def rank_groups(groups: List[Group], results: Optional[int] = None) -> Palette:
    """Sort groups descending by weight (stable) and keep the top ``results``."""
    ranked = sorted(groups, key=lambda g: g.weight, reverse=True)
    if results is not None:
        ranked = ranked[:results]
    return [PaletteColor(g.representative, g.weight) for g in ranked]


def grouped_palette(histogram: List[HistogramEntry], distance: int,
                    results: Optional[int] = None) -> Palette:
    """Group the histogram and return the ranked, truncated palette."""
    return rank_groups(group_histogram(histogram, distance), results)
