"""Logging setup for sermap."""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOG_FORMAT = "%(message)s"
DEBUG_LOG_FORMAT = "[%(name)s] %(message)s"


def resolve_env_log_level() -> int | None:
    """Return a logging level from the environment or None if unset.

    Honors SERMAP_LOG_LEVEL as a level name ("DEBUG", "info") or a number ("10").
    """
    val = os.environ.get("SERMAP_LOG_LEVEL")
    if not val:
        return None
    return parse_log_level(val)


def parse_log_level(val: str) -> int:
    if val.strip().isdigit():
        return int(val)
    level = logging.getLevelName(val.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {val}")
    return level


def configure_logging(level: int | None = None, console: Console | None = None) -> None:
    """Route the sermap loggers to a rich handler on stderr.

    Without an explicit level the environment decides, falling back to WARNING.
    """
    if level is None:
        level = resolve_env_log_level() or logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=False,
        show_path=level <= logging.DEBUG,
    )
    handler.setFormatter(logging.Formatter(DEBUG_LOG_FORMAT if level <= logging.DEBUG else LOG_FORMAT))

    logger = logging.getLogger("sermap")
    for existing in list(logger.handlers):
        if isinstance(existing, RichHandler):
            logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
