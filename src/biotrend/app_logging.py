"""Logging configuration helpers."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "biotrend"


def configure_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Configure the package logger with a single Rich handler.

    Calling this more than once only updates the level.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or numeric level

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        numeric = logging.getLevelName(level.upper())
        if not isinstance(numeric, int):
            raise ValueError(f"Unknown log level: {level}")
        level = numeric
    logger.setLevel(level)
    if logger.handlers:
        return logger
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
