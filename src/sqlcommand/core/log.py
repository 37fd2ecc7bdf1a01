"""Logging setup for scripts and applications embedding sqlcommand."""

from __future__ import annotations

import logging
import sys

DEFAULT_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: int | str = logging.INFO, format_string: str | None = None) -> None:
    """Route ``sqlcommand`` loggers to stderr at ``level``.

    Safe to call more than once; the handler is replaced, not duplicated.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%H:%M:%S"))

    logger = logging.getLogger("sqlcommand")
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.setLevel(level)
