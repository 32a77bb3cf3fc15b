"""Logging configuration."""

import logging
import sys

from core.constants import LogLevel

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Third-party loggers that are too chatty at INFO
_QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.dialects",
    "uvicorn.access",
    "httpx",
    "stripe",
)


def setup_logging(log_level: LogLevel | str = LogLevel.INFO) -> None:
    """
    Configure application logging.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    name = log_level.value if isinstance(log_level, LogLevel) else str(log_level)
    level = getattr(logging, name.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(
        logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    )
    root.addHandler(console_handler)

    for logger_name in _QUIET_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
