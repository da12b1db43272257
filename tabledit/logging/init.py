from __future__ import annotations

import logging
import sys
from typing import TextIO

"""Application logger for tabledit.

Every line starts with a level label (DEBUG only with --debug):

    INFO "public"."users" page 1/3 rows=100 total=250
    WARN load total rows failed: canceling statement due to statement timeout
    ERROR commit failed at statement 2/3: duplicate key value ...
    SUMMARY table="public"."users" statements=3 executed=1 status=failed ...

Module loggers (logging.getLogger(__name__), all under "tabledit.") reach the
handler through propagation; the "tabledit" logger itself does not propagate
to the root logger.
"""

__all__ = [
    "LOGGER_NAME",
    "SUMMARY_LEVEL",
    "LabeledFormatter",
    "get_logger",
    "log_summary",
    "reset_logging",
    "set_debug",
    "setup_logging",
]

LOGGER_NAME = "tabledit"

# INFO(20) < SUMMARY < WARNING(30)
SUMMARY_LEVEL = 25

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """`<LABEL> <message>`; a traceback, when attached, follows on the next lines."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
        SUMMARY_LEVEL: "SUMMARY",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level(debug: bool) -> int:
    return logging.DEBUG if debug else logging.INFO


def setup_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure the "tabledit" logger once and return it.

    Later calls return the configured logger unchanged (use set_debug() to
    switch levels). stream defaults to the current sys.stdout.
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    app_logger = logging.getLogger(LOGGER_NAME)
    for old in app_logger.handlers[:]:
        app_logger.removeHandler(old)

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    app_logger.addHandler(handler)
    app_logger.propagate = False

    _logger = app_logger
    set_debug(debug)
    return app_logger


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def set_debug(enabled: bool = True) -> None:
    """Switch the application logger and its handlers to DEBUG (or back to INFO)."""
    app_logger = get_logger()
    level = _level(enabled)
    app_logger.setLevel(level)
    for handler in app_logger.handlers:
        handler.setLevel(level)


def log_summary(message: str) -> None:
    """Emit `SUMMARY <message>`."""
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Forget the configured logger (tests)."""
    global _logger
    _logger = None
