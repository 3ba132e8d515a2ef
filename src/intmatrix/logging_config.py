"""
Logging Configuration
=====================
Opt-in console/file logging for applications built on the library.

The library itself only attaches a `NullHandler` to the `intmatrix` logger
(see `intmatrix/__init__.py`), so nothing is printed unless the application
calls `setup_logging()` or configures logging on its own.
"""
import logging
import sys
from typing import Optional, TextIO

from intmatrix.config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_NAMESPACE, LOG_STREAM


def _detach_handlers(logger: logging.Logger) -> None:
    """Remove and close every handler, so reconfiguring never leaks open log files."""
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Route the 'intmatrix' logger to a console stream and optionally a file.

    Calling it again replaces (and closes) the handlers of the previous call.

    Args:
        level: Logging level (e.g. logging.DEBUG, logging.INFO)
        log_file: Optional path to save logs to a file (overwritten).
        stream: Console stream, defaults to `sys.<config.LOG_STREAM>`.

    Returns:
        The configured 'intmatrix' logger.
    """
    logger = logging.getLogger(LOG_NAMESPACE)
    logger.setLevel(level)
    _detach_handlers(logger)

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(stream or getattr(sys, LOG_STREAM))
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging initialized at level {logging.getLevelName(level)}.")
    if log_file:
        logger.debug(f"Also logging to file: {log_file}")
    return logger
