"""Logging setup: loguru sinks plus stdlib interception."""

import logging
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"


class InterceptHandler(logging.Handler):
    """Forward stdlib log records (SQLAlchemy, click) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        logger.opt(depth=6, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(level: str = "WARNING", log_file: Optional[str] = None) -> None:
    """Configure loguru sinks.

    Args:
        level: Minimum level for the stderr sink and intercepted stdlib loggers
        log_file: Optional path of a rotating log file sink
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT, backtrace=False, diagnose=False)
    if log_file:
        logger.add(
            log_file,
            rotation="1 MB",
            retention="7 days",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            level=level,
            format=LOG_FORMAT,
        )
    logging.basicConfig(handlers=[InterceptHandler()], level=level, force=True)
    logger.debug("Logging configured at {}", level)
