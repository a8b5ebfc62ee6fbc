"""
Logging helpers.

Every module binds its own logger with ``get_logger(__name__)``. Handlers are
only installed by ``setup_logging``, so importing the package never changes
the host application's logging setup.
"""

import logging
import os
from typing import Optional, Union

PACKAGE_LOGGER = "scpca"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a logger for *name* (usually ``__name__``)."""
    return logging.getLogger(name)


def setup_logging(
    level: Optional[Union[int, str]] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """
    Attach a stream handler to the package logger.

    Args:
        level: Logging level name or number. Falls back to the
            ``SCPCA_LOG_LEVEL`` environment variable, then ``INFO``.
        fmt: Format string for the handler.

    Returns:
        The configured package logger.
    """
    if level is None:
        level = os.getenv("SCPCA_LOG_LEVEL", "INFO")
    if isinstance(level, str):
        name = level.upper()
        level = logging.getLevelName(name)
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {name}")

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    # Re-running setup_logging must not stack handlers
    if not any(getattr(h, "_scpca_handler", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler._scpca_handler = True
        logger.addHandler(handler)
    return logger
