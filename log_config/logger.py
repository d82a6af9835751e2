"""Centralized logging configuration using loguru."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"

# Replace loguru's default sink
logger.remove()

logger.add(
    sys.stderr,
    level="INFO",
    format=CONSOLE_FORMAT,
    colorize=True,
)


def add_file_sinks(logs_dir: Union[str, Path] = "logs") -> list[int]:
    """Add rotating debug and error log files.

    Args:
        logs_dir: Directory that receives the log files (created if missing)

    Returns:
        Handler ids, usable with ``logger.remove``
    """
    logs_dir = Path(logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)

    debug_id = logger.add(
        logs_dir / "modeltracker_{time}.log",
        rotation="50 MB",
        retention="10 days",
        level="DEBUG",
        format=FILE_FORMAT,
        enqueue=True,  # Thread-safe logging
    )
    error_id = logger.add(
        logs_dir / "errors_{time}.log",
        rotation="10 MB",
        retention="30 days",
        level="ERROR",
        format=FILE_FORMAT,
        enqueue=True,
    )
    return [debug_id, error_id]


def get_logger(name: Optional[str] = None):
    """Logger bound to a module name; the root logger when ``name`` is empty."""
    return logger.bind(name=name) if name else logger


def log_performance(operation: str, duration_ms: float, threshold_ms: float = 100.0) -> bool:
    """Report how long an operation took.

    Emits a warning when ``duration_ms`` exceeds ``threshold_ms`` and a debug
    record otherwise.

    Returns:
        True if the operation was over its threshold
    """
    slow = duration_ms > threshold_ms
    if slow:
        logger.warning(f"Slow operation: {operation} took {duration_ms:.2f}ms (threshold: {threshold_ms}ms)")
    else:
        logger.debug(f"{operation} took {duration_ms:.2f}ms")
    return slow


__all__ = ["logger", "get_logger", "add_file_sinks", "log_performance"]
