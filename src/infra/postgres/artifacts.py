"""Backup artifact discovery.

An artifact is one gzip-compressed SQL dump of one database, stored as
``<database>_<YYYYMMDD_HHMMSS>.sql.gz`` in the backup directory. There is no
index: freshness and "latest" lookups rescan the directory every time.
"""

from __future__ import annotations

import gzip
import re
import zlib
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from src.infra.constants import DEFAULT_CONSTANTS, SyncConstants


@dataclass(frozen=True)
class BackupArtifact:
    """A compressed dump file for one database at one point in time.

    Attributes:
        database: Database the dump belongs to
        path: Location of the file
        created_at: Timestamp embedded in the file name, if parsable
        modified_at: File modification time
        size_bytes: File size; zero means a failed backup
    """

    database: str
    path: Path
    created_at: datetime | None
    modified_at: datetime
    size_bytes: int

    @property
    def is_valid(self) -> bool:
        return self.size_bytes > 0

    def age_at(self, now: datetime) -> float:
        """Seconds between the last modification and ``now``."""
        return (now - self.modified_at).total_seconds()


def format_timestamp(
    moment: datetime, constants: SyncConstants = DEFAULT_CONSTANTS
) -> str:
    """Render a run timestamp as used in artifact names."""
    return moment.strftime(constants.TIMESTAMP_FORMAT)


def parse_timestamp(
    stamp: str, constants: SyncConstants = DEFAULT_CONSTANTS
) -> datetime | None:
    """Parse an artifact name timestamp, with or without seconds."""
    # Pick the format by length: strptime would happily read "1230" as 01:23:00
    fmt = (
        constants.TIMESTAMP_FORMAT
        if len(stamp) == len("YYYYMMDD_HHMMSS")
        else constants.SHORT_TIMESTAMP_FORMAT
    )
    try:
        return datetime.strptime(stamp, fmt)
    except ValueError:
        return None


def artifact_path(
    backup_dir: Path,
    database: str,
    timestamp: str,
    constants: SyncConstants = DEFAULT_CONSTANTS,
) -> Path:
    """Path of the artifact for ``database`` stamped with ``timestamp``."""
    return backup_dir / f"{database}_{timestamp}{constants.ARTIFACT_SUFFIX}"


def _name_pattern(database: str, constants: SyncConstants) -> re.Pattern[str]:
    # Anchored on the timestamp so "app" never matches "app_users_..."
    return re.compile(
        re.escape(database)
        + "_"
        + constants.TIMESTAMP_PATTERN.pattern
        + re.escape(constants.ARTIFACT_SUFFIX)
        + "$"
    )


class ArtifactStore:
    """Read-only view over the artifacts in a backup directory."""

    def __init__(
        self, backup_dir: Path, constants: SyncConstants = DEFAULT_CONSTANTS
    ) -> None:
        self.backup_dir = backup_dir
        self.constants = constants

    def scan(self, database: str) -> list[BackupArtifact]:
        """All artifacts for ``database``, including invalid (empty) ones."""
        if not self.backup_dir.is_dir():
            return []

        pattern = _name_pattern(database, self.constants)
        artifacts: list[BackupArtifact] = []
        for path in self.backup_dir.iterdir():
            match = pattern.fullmatch(path.name)
            if match is None or not path.is_file():
                continue
            stat = path.stat()
            artifacts.append(
                BackupArtifact(
                    database=database,
                    path=path,
                    created_at=parse_timestamp(match.group(1), self.constants),
                    modified_at=datetime.fromtimestamp(stat.st_mtime),
                    size_bytes=stat.st_size,
                )
            )
        return artifacts

    def find_fresh(self, database: str, now: datetime) -> BackupArtifact | None:
        """Newest valid artifact modified within the freshness window, if any."""
        window = self.constants.FRESHNESS_WINDOW.total_seconds()
        fresh = [
            a for a in self.scan(database) if a.is_valid and a.age_at(now) < window
        ]
        return _newest(fresh)

    def latest(self, database: str) -> BackupArtifact | None:
        """Valid artifact with the most recent modification time, if any."""
        return _newest([a for a in self.scan(database) if a.is_valid])


def _newest(artifacts: list[BackupArtifact]) -> BackupArtifact | None:
    if not artifacts:
        return None
    # mtime decides; the name timestamp only breaks ties
    return max(
        artifacts,
        key=lambda a: (a.modified_at, a.created_at or datetime.min, a.path.name),
    )


def has_payload(path: Path) -> bool:
    """Whether a gzip artifact decompresses to at least one byte.

    ``gzip`` on the remote side turns an empty or failed ``pg_dump`` into a
    small but non-empty file, so size alone does not prove a usable dump.
    """
    try:
        with gzip.open(path, "rb") as f:
            return bool(f.read(1))
    except (OSError, EOFError, zlib.error):
        return False
