"""
Theme Palette Configuration
Manages environment variables and defaults for palette extraction and rendering.
"""
import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv
from loguru import logger

from themepalette.errors import InvalidConfigurationError
from themepalette.services.colors.models import hex_to_rgb

# Load a local .env before reading settings
load_dotenv()

# Malformed environment values, reported by Config.check_environment()
_env_errors: List[str] = []


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        _env_errors.append(f"{name}={raw!r} is not an integer")
        return default


def _env_optional_int(name: str) -> Optional[int]:
    value = _env_int(name, 0)
    return value if value > 0 else None


def _env_color(name: str, default: str) -> Tuple[int, int, int]:
    raw = os.environ.get(name, default)
    try:
        color = hex_to_rgb(raw)
    except ValueError:
        color = None
    if color is None or len(raw.lstrip("#")) != 6:
        _env_errors.append(f"{name}={raw!r} is not a #rrggbb color")
        return hex_to_rgb(default)
    return color


class Config:
    """Configuration class for Theme Palette."""

    # Palette defaults
    DEFAULT_RESULTS: int = _env_int("THEMEPALETTE_RESULTS", 8)
    DEFAULT_DISTANCE: int = _env_int("THEMEPALETTE_DISTANCE", 16)
    # Thresholds are 8-bit, like the channels they compare
    MAX_GROUP_DISTANCE: int = 255

    # Swatch chart geometry
    SWATCH_BLOCK_WIDTH: int = _env_int("THEMEPALETTE_SWATCH_BLOCK_WIDTH", 64)
    SWATCH_BLOCK_HEIGHT: int = _env_int("THEMEPALETTE_SWATCH_BLOCK_HEIGHT", 64)
    SWATCH_BACKGROUND: Tuple[int, int, int] = _env_color("THEMEPALETTE_SWATCH_BACKGROUND", "#000000")

    # K-means behaviour
    KMEANS_STRICT_EMPTY: bool = bool(_env_int("THEMEPALETTE_KMEANS_STRICT_EMPTY", 0))
    KMEANS_MAX_RESEEDS: int = _env_int("THEMEPALETTE_KMEANS_MAX_RESEEDS", 3)
    KMEANS_MAX_ITERATIONS: Optional[int] = _env_optional_int("THEMEPALETTE_KMEANS_MAX_ITERATIONS")
    CHUNK_SIZE: int = _env_int("THEMEPALETTE_CHUNK_SIZE", 65536)

    # Rendering
    RENDER_WORKERS: int = _env_int("THEMEPALETTE_RENDER_WORKERS", 3)
    OUTPUT_EXTENSION: str = os.environ.get("THEMEPALETTE_OUTPUT_EXTENSION", ".png")
    GROUPED_SUFFIX: str = "_grouped"
    KMEANS_SUFFIX: str = "_kmeans"
    SWATCH_SUFFIX: str = "_palette"

    # Logging
    LOG_LEVEL: str = os.environ.get("THEMEPALETTE_LOG_LEVEL", "INFO")

    # Supported output formats
    SUPPORTED_EXTENSIONS = {".png", ".bmp", ".tif", ".tiff"}

    @classmethod
    def validate_results(cls, results: int) -> bool:
        """Validate requested palette size."""
        return results >= 1

    @classmethod
    def validate_distance(cls, distance: int) -> bool:
        """Validate grouping distance threshold."""
        return 0 <= distance <= cls.MAX_GROUP_DISTANCE

    @classmethod
    def validate_block_size(cls, width: int, height: int) -> bool:
        """Validate swatch block dimensions."""
        return width >= 1 and height >= 1

    @classmethod
    def validate_workers(cls, workers: int) -> bool:
        """Validate render thread pool size."""
        return workers >= 1

    @classmethod
    def validate_log_level(cls, level: str) -> bool:
        """Validate a loguru level name."""
        try:
            logger.level(level.upper())
        except ValueError:
            return False
        return True

    @classmethod
    def validate_output_extension(cls, extension: str) -> bool:
        """Validate output file extension (lossless formats only)."""
        return extension.lower() in cls.SUPPORTED_EXTENSIONS

    @classmethod
    def check_environment(cls) -> None:
        """
        Raise if any THEMEPALETTE_* variable could not be used.

        Raises:
            InvalidConfigurationError: Listing every malformed value
        """
        problems = list(_env_errors)
        if not cls.validate_log_level(cls.LOG_LEVEL):
            problems.append(f"THEMEPALETTE_LOG_LEVEL={cls.LOG_LEVEL!r} is not a log level")
        if problems:
            raise InvalidConfigurationError("; ".join(problems))


# Global config instance
config = Config()
