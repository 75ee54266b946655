"""Utility functions for db-schema-sync."""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

FilePath = Union[Path, str]


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[FilePath] = None,
    console: bool = True,
) -> None:  # pragma: no cover
    """Configure loguru sinks.

    Args:
        log_level: Minimum level for every sink
        log_file: Optional path of a rotating log file
        console: Whether to log to stderr
    """
    logger.remove()

    if console:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=False, colorize=True)

    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )

    logger.info(f"Logging configured: level={log_level}, file={log_file}, pid={os.getpid()}")
