"""Logging setup."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger


CONSOLE_FORMAT = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"


def configure_logging(level: str = "INFO", error_log: Optional[Path] = None) -> None:
    """
    Route loguru output to stderr, plus an append-only error log when given.

    Args:
        level: Console log level
        error_log: File collecting ERROR records (with tracebacks) across runs
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    if error_log is not None:
        error_log.parent.mkdir(parents=True, exist_ok=True)
        logger.add(str(error_log), level="ERROR", backtrace=False, diagnose=False, encoding="utf-8")
