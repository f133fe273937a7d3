"""
Logging configuration

Loggers are named after the class that owns them, see `get_logger()`, e.g., `CloseExpiredAuctions`. This makes it
easy to turn up logging for a single command or service via `configure_logging(loggers=...)`.
"""

import logging
import time
from typing import Any, Mapping

LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"


def configure_logging(
    level: int | str = logging.WARNING,
    handlers: list[logging.Handler] | None = None,
    loggers: Mapping[str, int | str] | None = None,
):
    """
    Configures the root logger. Timestamps are UTC.

    :param level: root log level. Level names, e.g. "INFO", are accepted.
    :param handlers: root handlers. If None, then log records are written to stderr.
    :param loggers: log level overrides per logger name

    >>> configure_logging(level="INFO", loggers={"CloseExpiredAuctions": "DEBUG"})
    >>> logger = logging.getLogger('ClosingSchedulerService')
    >>> logger.info('closed auctions: %s', [1, 2]) # doctest: +SKIP
    2026-10-18 14:48:20,594 [INFO] [ClosingSchedulerService] closed auctions: [1, 2]
    """
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(
        format=LOG_FORMAT,
        level=_level(level),
        handlers=handlers,
        force=True,
    )
    logging.captureWarnings(True)
    for name, logger_level in (loggers or {}).items():
        logging.getLogger(name).setLevel(_level(logger_level))


def _level(level: int | str) -> int | str:
    return level.upper() if isinstance(level, str) else level


def get_logger(obj: Any, name: str | None = None) -> logging.Logger:
    """
    Returns a logger named after the object's class.
    If `name` is specified, then a child logger is returned: `{obj.__class__.__name__}.{name}`
    """
    logger = logging.getLogger(obj.__class__.__name__)
    return logger.getChild(name) if name else logger
