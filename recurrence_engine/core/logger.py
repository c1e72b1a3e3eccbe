"""
Logging setup.

All loggers live under the ``recurrence_engine`` root logger, which owns the
single stream handler. Module loggers propagate to it.
"""

import logging
import sys

from recurrence_engine.core.config import get_settings

ROOT_LOGGER_NAME = "recurrence_engine"
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(get_settings().LOG_LEVEL.upper())
    return root


def setup_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger attached to the application's root logger.

    Args:
        name: Logger name, usually ``__name__`` of the calling module

    Returns:
        Configured logger instance
    """
    root = _configure_root()
    if name == ROOT_LOGGER_NAME:
        return root
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


logger = setup_logger()
