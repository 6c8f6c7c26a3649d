"""Logging helpers for Stepgate."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_HANDLER_MARKER = "_stepgate_handler"


def configure_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one stream handler to the ``stepgate`` logger and set its level.

    Safe to call repeatedly; the handler is only installed once.
    """
    logger = logging.getLogger("stepgate")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)

    if not any(getattr(h, _HANDLER_MARKER, False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _HANDLER_MARKER, True)
        logger.addHandler(handler)

    return logger
