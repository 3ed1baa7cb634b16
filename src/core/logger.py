"""Logging setup (loguru). Modules simply do `from loguru import logger`."""

import sys

from loguru import logger

from src.core.config import settings


def configure_logging(level: str | None = None) -> None:
    """Replace loguru's default sink with a single stderr sink at the requested level."""
    logger.remove()
    logger.add(sys.stderr, level=(level or settings.log_level).upper())
    logger.debug(f"chess.logging.configured level={level or settings.log_level}")
