"""Loguru sinks for the coach: colored stderr plus rotating run and error logs.

Sinks are installed on import. ``PRONUNCIATION_COACH_LOG_LEVEL`` and
``PRONUNCIATION_COACH_LOG_DIR`` pick the console level and the log
directory; :func:`configure_logging` reinstalls the sinks with other values,
e.g. from the ``--log-level`` command-line option.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import List, Optional, Union

from loguru import logger

LEVEL_ENV = "PRONUNCIATION_COACH_LOG_LEVEL"
DIR_ENV = "PRONUNCIATION_COACH_LOG_DIR"

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> <level>{level: <8}</level> "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> {message}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <8} {extra[name]}:{function}:{line} {message}"

_sink_ids: List[int] = []


def configure_logging(
    level: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    files: bool = True,
) -> Path:
    """Replace the coach's sinks.

    Args:
        level: Console level (default: ``$PRONUNCIATION_COACH_LOG_LEVEL`` or INFO)
        log_dir: Directory for ``coach_*.log`` and ``errors_*.log``
            (default: ``$PRONUNCIATION_COACH_LOG_DIR`` or ``logs``)
        files: Set False to log to stderr only

    Returns:
        The log directory in effect
    """
    level = (level or os.environ.get(LEVEL_ENV, "INFO")).upper()
    directory = Path(log_dir or os.environ.get(DIR_ENV, "logs"))

    while _sink_ids:
        logger.remove(_sink_ids.pop())

    _sink_ids.append(logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True))
    if files:
        directory.mkdir(parents=True, exist_ok=True)
        # enqueue: capture and relay threads log concurrently
        _sink_ids.append(logger.add(
            directory / "coach_{time}.log",
            level="DEBUG",
            format=FILE_FORMAT,
            rotation="20 MB",
            retention="10 days",
            enqueue=True,
        ))
        _sink_ids.append(logger.add(
            directory / "errors_{time}.log",
            level="ERROR",
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="30 days",
            enqueue=True,
        ))
    return directory


logger.remove()
logger.configure(extra={"name": "pronunciation_coach"})
configure_logging()


def get_logger(name: Optional[str] = None):
    """Logger whose records carry ``name`` (usually ``__name__``)."""
    if name:
        return logger.bind(name=name)
    return logger


def log_performance(operation: str, duration_ms: float, threshold_ms: float = 50.0) -> None:
    """Debug-log a timing, or warn when it exceeds ``threshold_ms``."""
    if duration_ms > threshold_ms:
        logger.warning(f"{operation} is slow: {duration_ms:.2f}ms (budget {threshold_ms:.0f}ms)")
    else:
        logger.debug(f"{operation}: {duration_ms:.2f}ms")


__all__ = ["configure_logging", "get_logger", "log_performance", "logger"]
