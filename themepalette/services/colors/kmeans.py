"""
Seeded k-means clustering of image colors.

Seeding uses k-means++ over all pixels, refinement uses Lloyd's algorithm
with the truncated RGB distance, and the final centroids are ranked by the
number of pixels assigned to them.

All randomness comes from an injected :class:`RandomSource` so that runs can
be replayed exactly.
"""
import math
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Tuple

import numpy as np
from loguru import logger

from ...errors import DegenerateClusteringError, EmptyClusterError
from ...utils.metrics import get_metrics
from .distance import dist, distance_matrix, nearest_index
from .histogram import unique_colors
from .models import Centroid, Palette, PaletteColor, PixelBuffer, as_color

DEFAULT_CHUNK_SIZE = 65536


class RandomSource(Protocol):
    """Source of uniform integer draws."""

    def randint(self, upper: int) -> int:
        """Return a uniform integer in ``[0, upper)``."""
        ...


class NumpyRandomSource:
    """RandomSource backed by ``numpy.random.default_rng``."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def randint(self, upper: int) -> int:
        if upper <= 0:
            raise ValueError(f"upper bound must be positive, got {upper}")
        return int(self._rng.integers(0, upper))


class SequenceRandomSource:
    """RandomSource replaying a fixed sequence of draws."""

    def __init__(self, values: Iterable[int]):
        self._values = list(values)
        self._position = 0

    def randint(self, upper: int) -> int:
        if self._position >= len(self._values):
            raise ValueError(f"Random sequence exhausted after {self._position} draws")
        value = self._values[self._position]
        self._position += 1
        if not 0 <= value < upper:
            raise ValueError(f"Scripted draw {value} outside [0, {upper})")
        return value


@dataclass
class KMeansResult:
    """Outcome of a k-means run."""
    palette: Palette
    centroids: List[Centroid]
    iterations: int
    delta: int
    stop_threshold: float
    empty_cluster_events: int = 0
    seeds: List[int] = field(default_factory=list)


def stop_threshold_for(width: int, height: int) -> float:
    """Convergence tolerance, scaled with the image size."""
    return math.sqrt(max(width, height))


def _chunks(n: int, chunk_size: int):
    for start in range(0, n, chunk_size):
        yield start, min(start + chunk_size, n)


class KMeansClusterer:
    """
    K-means++ seeding followed by Lloyd iterations.

    Args:
        k: Number of clusters
        rng: Random source used for seeding
        strict: Raise ``EmptyClusterError`` on an empty cluster
            instead of keeping its previous color
        max_iterations: Optional cap on Lloyd iterations (``None`` runs
            until the convergence threshold is met)
        chunk_size: Number of rows processed per vectorised block
    """

    def __init__(self, k: int, rng: RandomSource, strict: bool = False,
                 max_iterations: Optional[int] = None,
                 chunk_size: int = DEFAULT_CHUNK_SIZE):
        if k < 1:
            raise ValueError(f"k must be at least 1, got {k}")
        self.k = k
        self.rng = rng
        self.strict = strict
        self.max_iterations = max_iterations
        self.chunk_size = chunk_size

    def seed(self, buffer: PixelBuffer) -> Tuple[List[Centroid], List[int]]:
        """
        Pick initial centroids with k-means++.

        The first centroid is a uniformly drawn pixel. Each next one is drawn
        with probability proportional to the squared distance from the
        pixel to its nearest chosen centroid.

        Returns:
            Tuple of (centroids, chosen pixel indices)
        """
        pixels = buffer.pixels
        n = len(buffer)

        first = self.rng.randint(n)
        chosen = [first]
        centroids = [Centroid(as_color(pixels[first]))]
        nearest_sq = self._squared_distance_to(pixels, pixels[first])

        while len(centroids) < self.k:
            cumulative = np.cumsum(nearest_sq)
            total = int(cumulative[-1])
            if total == 0:
                raise DegenerateClusteringError(
                    f"Cannot seed {self.k} clusters: every pixel already "
                    f"matches one of {len(centroids)} chosen centroids"
                )
            p = self.rng.randint(total)
            # first pixel whose running sum exceeds p
            index = int(np.searchsorted(cumulative, p, side="right"))
            chosen.append(index)
            centroids.append(Centroid(as_color(pixels[index])))
            nearest_sq = np.minimum(nearest_sq, self._squared_distance_to(pixels, pixels[index]))

        logger.debug(f"Seeded centroids at pixels {chosen}: {[c.color for c in centroids]}")
        return centroids, chosen

    def _squared_distance_to(self, pixels: np.ndarray, color: np.ndarray) -> np.ndarray:
        out = np.empty(len(pixels), dtype=np.int64)
        target = color.reshape(1, 3)
        for start, end in _chunks(len(pixels), self.chunk_size):
            d = distance_matrix(pixels[start:end], target)[:, 0]
            out[start:end] = d * d
        return out

    def assign(self, colors: np.ndarray, counts: np.ndarray,
               centroids: List[Centroid]) -> Tuple[np.ndarray, np.ndarray]:
        """
        Assign every color to its nearest centroid.

        Colors carry their pixel counts, so this is equivalent to assigning
        each pixel individually. Channel sums and assigned counts are
        accumulated in the same pass.

        Returns:
            Tuple of (channel sums ``(k, 3)``, assigned counts ``(k,)``)
        """
        centers = np.array([c.color for c in centroids], dtype=np.int64)
        sums = np.zeros((len(centroids), 3), dtype=np.int64)
        assigned = np.zeros(len(centroids), dtype=np.int64)

        for start, end in _chunks(len(colors), self.chunk_size):
            block = colors[start:end]
            weights = counts[start:end]
            labels = nearest_index(distance_matrix(block, centers))
            np.add.at(assigned, labels, weights)
            np.add.at(sums, labels, block.astype(np.int64) * weights[:, None])

        return sums, assigned

    def update(self, centroids: List[Centroid], sums: np.ndarray,
               assigned: np.ndarray) -> Tuple[int, int]:
        """
        Move centroids to the truncated mean of their pixels.

        Returns:
            Tuple of (total movement, number of empty clusters)
        """
        delta = 0
        empty = 0
        for i, centroid in enumerate(centroids):
            count = int(assigned[i])
            centroid.count = count
            if count == 0:
                empty += 1
                if self.strict:
                    raise EmptyClusterError(
                        f"Centroid {i} {centroid.color} received no pixels"
                    )
                logger.warning(f"Centroid {i} {centroid.color} is empty, keeping previous color")
                continue
            new_color = as_color(sums[i] // count)
            delta += dist(new_color, centroid.color)
            centroid.color = new_color
        return delta, empty

    def fit(self, buffer: PixelBuffer) -> KMeansResult:
        """Cluster the buffer's pixels and rank the centroids by size."""
        colors, counts, _ = unique_colors(buffer.pixels)
        if len(colors) < self.k:
            raise DegenerateClusteringError(
                f"Insufficient unique colors: {len(colors)} < {self.k}"
            )

        logger.info(f"Starting k-means with k={self.k}, {len(buffer)} pixels, {len(colors)} distinct colors")
        centroids, seeds = self.seed(buffer)
        threshold = stop_threshold_for(buffer.width, buffer.height)

        iterations = 0
        empty_events = 0
        while True:
            iterations += 1
            sums, assigned = self.assign(colors, counts, centroids)
            delta, empty = self.update(centroids, sums, assigned)
            empty_events += empty
            logger.debug(f"Iteration {iterations}: delta={delta} (threshold {threshold:.3f})")

            if delta <= threshold:
                break
            if self.max_iterations is not None and iterations >= self.max_iterations:
                logger.warning(
                    f"K-means stopped after {iterations} iterations without converging "
                    f"(delta={delta})"
                )
                break

        metrics = get_metrics()
        metrics.increment("kmeans_runs_total")
        metrics.increment("kmeans_iterations_total", iterations)
        if empty_events:
            metrics.increment("kmeans_empty_cluster_total", empty_events)

        ranked = sorted(centroids, key=lambda c: c.count, reverse=True)
        palette = [PaletteColor(c.color, c.count) for c in ranked]
        logger.info(f"K-means converged after {iterations} iterations: {[c.count for c in ranked]}")

        return KMeansResult(
            palette=palette,
            centroids=centroids,
            iterations=iterations,
            delta=delta,
            stop_threshold=threshold,
            empty_cluster_events=empty_events,
            seeds=seeds,
        )


def kmeans_palette(buffer: PixelBuffer, k: int, rng: RandomSource, **kwargs) -> Palette:
    """Convenience wrapper returning only the ranked palette."""
    return KMeansClusterer(k, rng, **kwargs).fit(buffer).palette
