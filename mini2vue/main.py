"""
mini2vue - Alipay mini-program to Vue project converter

Usage:
    mini2vue --input ./mini-program --output ./vue-project
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from mini2vue.config import settings, log_settings
from mini2vue.services.project import ProjectConverter, ConfigurationError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mini2vue",
        description="Convert an Alipay mini-program project into a Vue project",
    )
    parser.add_argument("--input", "-i", required=True, help="Mini-program source directory")
    parser.add_argument("--output", "-o", required=True, help="Output directory for the Vue project")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


async def run(input_dir: Path, output_dir: Path) -> int:
    """
    Run a conversion.

    Returns:
        Process exit status
    """
    logger.info("=" * 60)
    logger.info("mini2vue")
    logger.info("=" * 60)
    log_settings()

    try:
        report = await ProjectConverter().convert(input_dir, output_dir)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    if report.failed:
        logger.warning(f"{len(report.failed)} file(s) failed:")
        for path in report.failed:
            logger.warning(f"  {path}")
    return 0


def main(argv=None):
    args = build_parser().parse_args(argv)

    # Configure logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    sys.exit(asyncio.run(run(Path(args.input), Path(args.output))))


if __name__ == "__main__":
    main()
