"""
Theme Palette command line interface.

    themepalette IMAGE [-r RESULTS] [-d DISTANCE] [--seed SEED] [-o DIR] [--json]
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from themepalette import __version__
from themepalette.config import config
from themepalette.errors import InvalidConfigurationError, PaletteError
from themepalette.schemas import format_text_report
from themepalette.services.orchestrator import PaletteOrchestrator
from themepalette.utils.logging import configure_logging
from themepalette.utils.metrics import get_metrics

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _positive_int(value: str) -> int:
    number = int(value)
    if not config.validate_results(number):
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return number


def _distance(value: str) -> int:
    number = int(value)
    if not config.validate_distance(number):
        raise argparse.ArgumentTypeError(
            f"must be between 0 and {config.MAX_GROUP_DISTANCE}, got {value}"
        )
    return number


def _log_level(value: str) -> str:
    if not config.validate_log_level(value):
        raise argparse.ArgumentTypeError(f"unknown log level {value!r}")
    return value.upper()


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="themepalette",
        description="Create a theme palette for an image by grouping and k-means clustering.",
    )
    parser.add_argument("image", metavar="IMAGE", help="The image to create a palette for")
    parser.add_argument(
        "-r", "--results", type=_positive_int, default=config.DEFAULT_RESULTS,
        help="Number of colors to return (default: %(default)s)",
    )
    parser.add_argument(
        "-d", "--distance", type=_distance, default=config.DEFAULT_DISTANCE,
        help="Max Euclidean distance between colors in group, 0-255 (default: %(default)s)",
    )
    parser.add_argument(
        "--seed", type=int, default=None,
        help="Seed for k-means initialization (random when omitted)",
    )
    parser.add_argument(
        "-o", "--output-dir", default=None,
        help="Directory for the rendered images (default: next to IMAGE)",
    )
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    parser.add_argument("--log-level", type=_log_level, default=None, help=f"Log level (default: {config.LOG_LEVEL})")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config.check_environment()
    except InvalidConfigurationError as e:
        parser.error(f"invalid environment: {e}")
    configure_logging(args.log_level)

    try:
        orchestrator = PaletteOrchestrator(
            results=args.results,
            distance=args.distance,
            seed=args.seed,
        )
        if args.output_dir is not None:
            Path(args.output_dir).mkdir(parents=True, exist_ok=True)

        if not args.json:
            print(f"Loading {args.image}...")
        report = orchestrator.run(args.image, args.output_dir)
    except InvalidConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE
    except PaletteError as e:
        logger.error(f"Palette run failed: {e}")
        return EXIT_FAILURE
    except OSError as e:
        logger.error(f"Cannot prepare output directory: {e}")
        return EXIT_FAILURE

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(format_text_report(report))

    logger.debug(f"Metrics: {get_metrics().get_summary()}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
