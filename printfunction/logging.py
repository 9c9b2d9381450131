"""Logging utilities for printfunction runs."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

_LOGGER_NAME = "printfunction"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a module-scoped logger under the printfunction hierarchy."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, stream: TextIO | None = None
) -> logging.Logger:
    """Configure the printfunction logger with a single stderr handler.

    Quiet by default so stderr only carries warnings and errors; ``verbose``
    turns on debug traces of the resolver, prefilter and extractor.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Reset handlers to avoid duplicate output when main() runs more than once.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    stream_handler = logging.StreamHandler(stream or sys.stderr)
    stream_handler.setLevel(level)
    stream_handler.setFormatter(
        logging.Formatter("[printfunction] %(levelname)s %(message)s")
    )
    logger.addHandler(stream_handler)

    return logger


__all__ = ["configure_logging", "get_logger"]
