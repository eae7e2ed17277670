"""
Logging Setup
=============
Handlers for the ``pentagrammap`` logger.

The library modules only create module loggers; nothing is printed until an
entry point (``python -m pentagrammap``, ``run.py``) calls ``setup_logging``.
"""
import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "pentagrammap"
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the package log records to stdout and, optionally, to a file.

    Calling it again replaces the handlers of a previous call.

    Args:
        level: Threshold for the package logger and its handlers.
        log_file: Path of a log file, truncated on every call.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    logger.addHandler(_handler(logging.StreamHandler(sys.stdout), level))
    if log_file:
        logger.addHandler(_handler(logging.FileHandler(log_file, mode="w", encoding="utf-8"), level))

    logger.debug("Logging to stdout%s at level %s.", f" and {log_file}" if log_file else "", logging.getLevelName(level))
    return logger
