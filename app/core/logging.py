"""Logging setup: loguru sink plus interception of standard library loggers."""

import logging
import sys
from typing import Literal

from loguru import logger

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class InterceptHandler(logging.Handler):
    """Forward standard library log records (uvicorn, sqlalchemy) to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: LogLevel = "INFO", *, json_format: bool = False) -> None:
    """
    Configure loguru as the single log sink.

    Args:
        level: minimum level written to stderr
        json_format: serialize each record as JSON (for log shippers)
    """
    logger.remove()
    logger.add(sys.stderr, level=level, serialize=json_format)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for name in ["httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine"]:
        logging.getLogger(name).setLevel(logging.WARNING)
