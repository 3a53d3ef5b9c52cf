"""Sync constants and defaults.

This module centralizes the magic strings, file naming rules and default
values used throughout the sync workflow.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path


@dataclass(frozen=True)
class SyncConstants:
    """Constants for the remote-to-local PostgreSQL sync.

    All attributes are class-level and immutable.
    """

    # Artifact naming: <database>_<YYYYMMDD_HHMMSS>.sql.gz
    ARTIFACT_SUFFIX: str = ".sql.gz"
    TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M%S"
    # Accepted when scanning, for artifacts stamped without seconds
    SHORT_TIMESTAMP_FORMAT: str = "%Y%m%d_%H%M"
    TIMESTAMP_PATTERN: re.Pattern[str] = re.compile(r"(\d{8}_\d{4}(?:\d{2})?)")

    # An artifact younger than this suppresses a new remote fetch
    FRESHNESS_WINDOW: timedelta = timedelta(hours=24)

    # Databases that are never offered when listing a remote server
    TEMPLATE_DATABASES: tuple[str, ...] = ("template0", "template1")

    # Log line layout shared by the console and file sinks
    LOG_FORMAT: str = "[{time:YYYY-MM-DD HH:mm:ss}] [{level}] {message}"


@dataclass(frozen=True)
class SyncDefaults:
    """Built-in configuration defaults, the lowest configuration layer."""

    remote_user: str = "youruser"
    remote_host: str = "your.server.com"
    remote_container: str = "postgres"
    remote_db_user: str = "postgres"
    databases: tuple[str, ...] = ("yourdb",)
    backup_dir: Path = Path("./backups")
    local_container: str = "sql_db"
    local_db_user: str = "postgres"
    log_file: Path = Path("./db_sync.log")


DEFAULT_CONSTANTS = SyncConstants()
DEFAULT_SETTINGS = SyncDefaults()
