"""
Loguru logging configuration for the import tools.

Intercepts stdlib logging and redirects to loguru for consistent formatting.
"""

import logging
import os
import sys
from pathlib import Path

from loguru import logger


class InterceptHandler(logging.Handler):
    """Intercept stdlib logging and redirect to loguru."""

    def emit(self, record):
        # Get corresponding loguru level
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(level: str | None = None, logs_dir: Path | None = None) -> None:
    """
    Configure loguru sinks and intercept all stdlib logging.

    Args:
        level: Console level; falls back to LOG_LEVEL, then INFO (DEBUG if DEBUG is set)
        logs_dir: Directory for the rotated file sink (default: ./logs)
    """
    level = level or os.getenv("LOG_LEVEL", "DEBUG" if os.getenv("DEBUG") else "INFO")

    # Remove default loguru handler
    logger.remove()

    # Console handler with colors
    logger.add(
        sys.stdout,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        ),
        level=level.upper(),
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    # File handler (only in non-DEBUG mode)
    if not os.getenv("DEBUG"):
        logs_dir = logs_dir or Path("logs")
        logs_dir.mkdir(exist_ok=True)

        logger.add(
            logs_dir / "import_{time:YYYY-MM-DD}.log",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}",
            level="INFO",
            rotation="00:00",
            retention="30 days",
            compression="zip",
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Google client libraries and httpx log through their own loggers
    for logger_name in ["google", "google.cloud", "httpx", "urllib3"]:
        logging_logger = logging.getLogger(logger_name)
        logging_logger.handlers = [InterceptHandler()]
        logging_logger.propagate = False
