"""Logging for fluentmongo.

Modules log through `logging.getLogger(__name__)`, so every record lands
under the package logger `fluentmongo`. That logger owns a single stderr
handler and does not propagate, which keeps library output out of the host
application's root logger unless the host injects its own logger into
`Registry`.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from fluentmongo.core.settings import ObservabilitySettings

LOGGER_NAME = "fluentmongo"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _has_stream_handler(logger: logging.Logger) -> bool:
    return any(isinstance(h, logging.StreamHandler) for h in logger.handlers)


def get_logger(name: str = LOGGER_NAME, level: Optional[str] = None) -> logging.Logger:
    """Return a logger in the fluentmongo hierarchy.

    The package logger is set up on first use (stderr handler, INFO level).
    `level` applies to the returned logger only; `None` keeps its current level.
    """

    package = logging.getLogger(LOGGER_NAME)
    package.propagate = False
    if not _has_stream_handler(package):
        handler = logging.StreamHandler(stream=sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        package.addHandler(handler)
    if package.level == logging.NOTSET:
        package.setLevel(logging.INFO)

    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(level.upper())
    return logger


def configure_logging(observability: ObservabilitySettings) -> logging.Logger:
    """Apply `observability.log_level` to the package logger and return it."""

    return get_logger(LOGGER_NAME, observability.log_level)
