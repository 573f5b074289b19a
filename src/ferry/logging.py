"""Logging setup for the CLI and embedding applications."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(level: str | None = None, console: Console | None = None) -> None:
    """
    Route the ``ferry`` loggers through a rich handler.

    Args:
        level: Log level name; falls back to ``FERRY_LOG_LEVEL`` then INFO
        console: Console to render to (stderr by default)
    """
    level = (level or os.getenv("FERRY_LOG_LEVEL", "INFO")).upper()
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))

    logger = logging.getLogger("ferry")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False
