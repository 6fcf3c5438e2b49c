"""Logging setup shared by the pipeline entry points.

Leaf modules use ``logging.getLogger(__name__)``; orchestrators call
``setup_logging`` once to attach a formatted stdout handler. The level can
be overridden with the INKPRESS_LOG_LEVEL environment variable.
"""

from __future__ import annotations

import logging
import os
import sys

LOG_LEVEL_ENV = "INKPRESS_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(level: int | str | None) -> int:
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV, "INFO")
    if isinstance(level, str):
        resolved = logging.getLevelName(level.strip().upper())
        return resolved if isinstance(resolved, int) else logging.INFO
    return level


def setup_logging(
    level: int | str | None = None,
    module_name: str = "inkpress",
) -> logging.Logger:
    """Return the named logger, attaching a stdout handler on first use.

    Args:
        level: Level name or number; defaults to $INKPRESS_LOG_LEVEL, then INFO.
        module_name: Logger name, e.g. "inkpress.pipeline".
    """
    logger = logging.getLogger(module_name)
    if logger.handlers:
        return logger

    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(resolved)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
    return logger
