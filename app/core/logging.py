"""
Logging for the Event Planner service, built on loguru.

Records emitted through the standard ``logging`` module (uvicorn,
SQLAlchemy) are forwarded into loguru so everything shares one set of sinks.
"""
import logging
import sys
from loguru import logger
from app.core.config import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

STDLIB_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "sqlalchemy.engine")


class InterceptHandler(logging.Handler):
    """Hand stdlib log records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging() -> None:
    logger.remove()
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=settings.log_level, colorize=True)

    if settings.log_file:
        logger.add(
            settings.log_file,
            rotation="500 MB",
            retention="10 days",
            compression="zip",
            format=FILE_FORMAT,
            level="INFO",
        )

    for name in STDLIB_LOGGERS:
        std_logger = logging.getLogger(name)
        std_logger.handlers = [InterceptHandler()]
        std_logger.propagate = False


setup_logging()

__all__ = ["logger", "setup_logging"]
