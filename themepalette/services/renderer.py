"""
Concurrent palette rendering.

Three independent tasks turn the clustering results into artifacts:

- the source image quantized against the grouped palette (first match),
- the source image quantized against the k-means palette (nearest),
- a swatch chart comparing both palettes.

Each task gets its own copy of the pixel buffer and palettes when it is
submitted and shares nothing with the others. The caller blocks until all
of them have finished; any failure aborts the run.
"""
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union

from loguru import logger

from themepalette.config import config
from themepalette.errors import InvalidConfigurationError, OutputWriteError, PaletteError
from themepalette.services.colors.models import Color, Palette, PixelBuffer
from themepalette.services.colors.quantize import quantize_first_match, quantize_nearest
from themepalette.services.colors.swatches import render_swatch_chart
from themepalette.services.imaging import write_image
from themepalette.utils.metrics import get_metrics, timed

Writer = Callable[[PixelBuffer, Path], Path]


@dataclass(frozen=True)
class RenderPaths:
    """Destination of each artifact."""
    grouped: Path
    kmeans: Path
    swatch: Path

    @classmethod
    def for_image(cls, image_path: Union[str, Path],
                  output_dir: Optional[Union[str, Path]] = None,
                  extension: Optional[str] = None) -> "RenderPaths":
        """Derive ``<stem>_grouped``, ``<stem>_kmeans`` and ``<stem>_palette`` paths."""
        image_path = Path(image_path)
        directory = Path(output_dir) if output_dir is not None else image_path.parent
        extension = extension or config.OUTPUT_EXTENSION
        stem = image_path.stem
        return cls(
            grouped=directory / f"{stem}{config.GROUPED_SUFFIX}{extension}",
            kmeans=directory / f"{stem}{config.KMEANS_SUFFIX}{extension}",
            swatch=directory / f"{stem}{config.SWATCH_SUFFIX}{extension}",
        )


@dataclass(frozen=True)
class RenderResult:
    """One written artifact."""
    name: str
    path: Path
    width: int
    height: int


def render_grouped_image(buffer: PixelBuffer, grouped: Palette, distance: int,
                         path: Path, writer: Writer = write_image) -> RenderResult:
    """Write the source recolored to the first grouped color within ``distance``."""
    with timed("render_grouped"):
        quantized = quantize_first_match(buffer, grouped, distance)
        writer(quantized, path)
    return RenderResult("grouped", path, quantized.width, quantized.height)


def render_kmeans_image(buffer: PixelBuffer, centroids: Palette, path: Path,
                        writer: Writer = write_image) -> RenderResult:
    """Write the source recolored to its nearest centroid."""
    with timed("render_kmeans"):
        quantized = quantize_nearest(buffer, centroids)
        writer(quantized, path)
    return RenderResult("kmeans", path, quantized.width, quantized.height)


def render_swatch_image(grouped: Palette, centroids: Palette, results: int,
                        block_width: int, block_height: int, background: Color,
                        path: Path, writer: Writer = write_image) -> RenderResult:
    """Write the two-row swatch chart."""
    with timed("render_swatch"):
        chart = render_swatch_chart(grouped, centroids, results, block_width, block_height, background)
        writer(chart, path)
    return RenderResult("swatch", path, chart.width, chart.height)


class PaletteRenderer:
    """
    Runs the three rendering tasks in parallel.

    Args:
        distance: Grouping threshold reused by the first-match quantizer
        results: Number of swatch blocks per row
        block_width: Swatch block width in pixels
        block_height: Swatch block height in pixels
        background: Fill for empty swatch blocks
        workers: Thread pool size
        writer: Function persisting a buffer to a path
    """

    def __init__(self, distance: int, results: int,
                 block_width: int = None, block_height: int = None,
                 background: Color = None, workers: int = None,
                 writer: Writer = write_image):
        self.distance = distance
        self.results = results
        self.block_width = block_width if block_width is not None else config.SWATCH_BLOCK_WIDTH
        self.block_height = block_height if block_height is not None else config.SWATCH_BLOCK_HEIGHT
        if not config.validate_block_size(self.block_width, self.block_height):
            raise InvalidConfigurationError(
                f"Swatch block size must be positive, got {self.block_width}×{self.block_height}"
            )
        self.background = background if background is not None else config.SWATCH_BACKGROUND
        self.workers = workers if workers is not None else config.RENDER_WORKERS
        if not config.validate_workers(self.workers):
            raise InvalidConfigurationError(f"Render workers must be at least 1, got {self.workers}")
        self.writer = writer

    def render(self, buffer: PixelBuffer, grouped: Palette, centroids: Palette,
               paths: RenderPaths) -> Dict[str, RenderResult]:
        """
        Render all artifacts and wait for every task to finish.

        Returns:
            Mapping of artifact name ("grouped", "kmeans", "swatch") to result

        Raises:
            OutputWriteError: If any task failed
        """
        logger.info(f"Rendering 3 artifacts with {self.workers} workers")

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                "grouped": executor.submit(
                    render_grouped_image, buffer.copy(), list(grouped), self.distance,
                    paths.grouped, self.writer
                ),
                "kmeans": executor.submit(
                    render_kmeans_image, buffer.copy(), list(centroids),
                    paths.kmeans, self.writer
                ),
                "swatch": executor.submit(
                    render_swatch_image, list(grouped), list(centroids), self.results,
                    self.block_width, self.block_height, self.background,
                    paths.swatch, self.writer
                ),
            }
            wait(list(futures.values()))

        results: Dict[str, RenderResult] = {}
        failures: List[str] = []
        first_error: Optional[BaseException] = None
        for name, future in futures.items():
            error = future.exception()
            if error is None:
                results[name] = future.result()
                continue
            logger.error(f"Render task '{name}' failed: {error}")
            failures.append(name)
            if first_error is None:
                first_error = error

        if first_error is not None:
            if isinstance(first_error, PaletteError):
                raise first_error
            raise OutputWriteError(
                f"Rendering failed for {', '.join(failures)}: {first_error}"
            ) from first_error

        get_metrics().increment("render_artifacts_total", len(results))
        for result in results.values():
            logger.info(f"Wrote {result.name} artifact {result.path} ({result.width}×{result.height})")
        return results
