"""Loguru sinks for sync runs.

Every log line is echoed to the console and appended to the run log file,
timestamped and tagged with its severity.
"""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from src.infra.constants import DEFAULT_CONSTANTS


def configure_logging(log_file: Path | None, *, verbose: bool = False) -> None:
    """Replace loguru's default handler with the console and file sinks.

    Args:
        log_file: File the log is appended to; ``None`` logs to the console only
        verbose: Include DEBUG records (the executed argv of each command)
    """
    level = "DEBUG" if verbose else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level, format=DEFAULT_CONSTANTS.LOG_FORMAT)
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            level=level,
            format=DEFAULT_CONSTANTS.LOG_FORMAT,
            mode="a",
            encoding="utf-8",
        )
    logger.debug(f"Logging configured (level={level}, file={log_file})")
