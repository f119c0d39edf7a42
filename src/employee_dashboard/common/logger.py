"""Centralized logging configuration.

All modules should use `get_logger(__name__)` to obtain a logger instance.
"""

import logging
import sys
from typing import Any

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_initialized = False


def init_logging(level: str = "INFO") -> None:
    """Configure the package logger once; later calls only adjust the level."""
    global _initialized
    root = logging.getLogger("employee_dashboard")
    root.setLevel(level.upper())
    if _initialized:
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    root.addHandler(handler)
    _initialized = True


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_error(logger: logging.Logger, exc: BaseException, message: str, **context: Any) -> None:
    """Log an exception with its traceback and key=value context."""
    extra = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
    logger.error("%s: %s %s", message, exc, extra, exc_info=exc)
