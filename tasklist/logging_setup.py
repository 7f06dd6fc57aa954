"""Loguru sink configuration for the command-line entry points."""

import sys
from pathlib import Path

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    """Replace loguru's default sink with a stderr sink and an optional file sink.

    The console sink stays at ``level`` so warnings do not clutter the task
    view; the file sink, when configured, records everything from DEBUG up.
    Call once, before the first store operation.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, colorize=None)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_file),
            level="DEBUG",
            format=LOG_FORMAT,
            rotation="1 MB",
            retention=3,
            encoding="utf-8",
        )
