"""
Theme Palette Orchestrator
Chains decoding, histogram grouping, k-means clustering and rendering.
"""
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

from loguru import logger

from themepalette.config import config
from themepalette.errors import EmptyClusterError, InvalidConfigurationError
from themepalette.schemas import PaletteReport, RenderedArtifact, palette_entries
from themepalette.services.colors.grouping import grouped_palette
from themepalette.services.colors.histogram import build_histogram, mean_color, most_common
from themepalette.services.colors.kmeans import (
    KMeansClusterer, KMeansResult, NumpyRandomSource, RandomSource
)
from themepalette.services.colors.models import Palette, PixelBuffer, rgb_to_hex
from themepalette.services.imaging import read_image, write_image
from themepalette.services.renderer import PaletteRenderer, RenderPaths, Writer
from themepalette.utils.metrics import timed


class OrchestrationResult:
    """Intermediate results and timings of one palette run."""

    def __init__(self, source: str):
        self.source = source
        self.timings: Dict[str, float] = {}
        self.processing_notes: List[str] = []

        # Stage results
        self.buffer: Optional[PixelBuffer] = None
        self.mean_color = None
        self.most_common: Palette = []
        self.grouped: Palette = []
        self.kmeans: Optional[KMeansResult] = None
        self.artifacts = {}


class PaletteOrchestrator:
    """
    Runs the full palette pipeline for one image.

    Args:
        results: Palette size; also the number of k-means clusters
        distance: Grouping distance threshold
        rng: Random source for k-means seeding (seeded numpy source if omitted)
        seed: Seed used when ``rng`` is omitted
        strict: Treat empty clusters as errors and reseed
        max_reseeds: Extra seeding attempts in strict mode
        max_iterations: Optional cap on Lloyd iterations
        renderer: Renderer to use (built from config if omitted)
    """

    def __init__(self, results: int = None, distance: int = None,
                 rng: Optional[RandomSource] = None, seed: Optional[int] = None,
                 strict: bool = None, max_reseeds: int = None,
                 max_iterations: Optional[int] = None,
                 renderer: Optional[PaletteRenderer] = None,
                 writer: Writer = write_image):
        self.results = results if results is not None else config.DEFAULT_RESULTS
        self.distance = distance if distance is not None else config.DEFAULT_DISTANCE
        if not config.validate_results(self.results):
            raise InvalidConfigurationError(f"results must be at least 1, got {self.results}")
        if not config.validate_distance(self.distance):
            raise InvalidConfigurationError(
                f"distance must be between 0 and {config.MAX_GROUP_DISTANCE}, got {self.distance}"
            )

        self.seed = seed
        self.rng = rng if rng is not None else NumpyRandomSource(seed)
        self.strict = strict if strict is not None else config.KMEANS_STRICT_EMPTY
        self.max_reseeds = max_reseeds if max_reseeds is not None else config.KMEANS_MAX_RESEEDS
        self.max_iterations = max_iterations if max_iterations is not None else config.KMEANS_MAX_ITERATIONS
        self.renderer = renderer or PaletteRenderer(
            distance=self.distance,
            results=self.results,
            writer=writer,
        )

    def analyze(self, buffer: PixelBuffer, result: OrchestrationResult) -> None:
        """Compute the mean color, histogram ranking, grouped and k-means palettes."""
        result.buffer = buffer

        with timed("histogram"):
            start_time = time.time()
            histogram = build_histogram(buffer)
            result.mean_color = mean_color(buffer)
            result.most_common = most_common(histogram, self.results)
            result.timings["histogram"] = (time.time() - start_time) * 1000

        with timed("grouping"):
            start_time = time.time()
            result.grouped = grouped_palette(histogram, self.distance, self.results)
            result.timings["grouping"] = (time.time() - start_time) * 1000
        logger.info(f"Grouping produced {len(result.grouped)} of {self.results} requested colors")

        with timed("kmeans"):
            start_time = time.time()
            result.kmeans = self.cluster(buffer, result)
            result.timings["kmeans"] = (time.time() - start_time) * 1000

    def cluster(self, buffer: PixelBuffer, result: Optional[OrchestrationResult] = None) -> KMeansResult:
        """
        Run k-means, reseeding after empty clusters in strict mode.

        Raises:
            DegenerateClusteringError: If clustering is impossible or every
                attempt produced an empty cluster
        """
        attempts = self.max_reseeds + 1 if self.strict else 1
        for attempt in range(1, attempts + 1):
            clusterer = KMeansClusterer(
                self.results, self.rng,
                strict=self.strict,
                max_iterations=self.max_iterations,
                chunk_size=config.CHUNK_SIZE,
            )
            try:
                return clusterer.fit(buffer)
            except EmptyClusterError as e:
                if attempt == attempts:
                    raise
                logger.warning(f"Attempt {attempt}/{attempts} hit an empty cluster ({e}), reseeding")
                if result is not None:
                    result.processing_notes.append(f"reseeded after: {e}")

    def render(self, result: OrchestrationResult, paths: RenderPaths) -> None:
        """Render the artifacts for an analyzed result."""
        with timed("render"):
            start_time = time.time()
            result.artifacts = self.renderer.render(
                result.buffer, result.grouped, result.kmeans.palette, paths
            )
            result.timings["render"] = (time.time() - start_time) * 1000

    def build_report(self, result: OrchestrationResult) -> PaletteReport:
        """Assemble the report model from a finished result."""
        buffer = result.buffer
        total = len(buffer)
        return PaletteReport(
            source=result.source,
            width=buffer.width,
            height=buffer.height,
            mean_color=rgb_to_hex(result.mean_color),
            results=self.results,
            distance=self.distance,
            seed=self.seed,
            kmeans_iterations=result.kmeans.iterations,
            most_common=palette_entries(result.most_common, total),
            grouped=palette_entries(result.grouped, total),
            kmeans=palette_entries(result.kmeans.palette[:self.results], total),
            artifacts=[
                RenderedArtifact(name=a.name, path=str(a.path), width=a.width, height=a.height)
                for a in result.artifacts.values()
            ],
        )

    def run(self, image_path: Union[str, Path],
            output_dir: Optional[Union[str, Path]] = None) -> PaletteReport:
        """
        Process one image end to end.

        Raises:
            ImageDecodeError: If the image cannot be decoded
            DegenerateClusteringError: If k-means cannot cluster the image
            OutputWriteError: If any artifact cannot be written
        """
        start_time = time.time()
        result = OrchestrationResult(str(image_path))
        logger.info(
            f"Starting palette run for {image_path} "
            f"(results={self.results}, distance={self.distance}, seed={self.seed})"
        )

        with timed("decode"):
            buffer = read_image(image_path)

        self.analyze(buffer, result)
        self.render(result, RenderPaths.for_image(image_path, output_dir))

        result.timings["total"] = (time.time() - start_time) * 1000
        timings = {k: f"{v:.1f}" for k, v in result.timings.items()}
        logger.bind(timings_ms=timings).info(f"Palette run finished in {timings['total']}ms")
        for note in result.processing_notes:
            logger.info(f"Note: {note}")

        return self.build_report(result)
