"""Loguru configuration."""

import sys

from loguru import logger

from app.config import get_settings


def configure_logging() -> None:
    """Install a single stderr sink at the configured level."""
    settings = get_settings()
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{line} - "
            "{message} | {extra}"
        ),
    )
