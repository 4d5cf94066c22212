"""
Theme Palette Logging
Centralized logging configuration using loguru.
"""
import sys
from typing import Optional

from loguru import logger

from themepalette.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Route loguru output to stderr with the project format.

    Standard output is reserved for the palette report.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=(level or config.LOG_LEVEL).upper(),
        serialize=False  # Set to True for JSON output
    )
