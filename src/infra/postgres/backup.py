"""Remote PostgreSQL backup fetching.

Fetches gzip-compressed ``pg_dump`` output from a database container on a
remote host over ssh, unless a recent enough local artifact already exists.
"""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Literal

from loguru import logger

from src.infra.shell_commands import ShellCommands, SshCommands, format_command

from .artifacts import ArtifactStore, artifact_path, has_payload
from .config import RunConfig
from .errors import RemoteFetchError

FetchStatus = Literal["fetched", "reused", "dry-run"]


@dataclass(frozen=True)
class FetchResult:
    """Outcome of the fetch step for one database.

    Attributes:
        database: Database name
        status: Whether a new dump was fetched, a fresh one reused, or only
                the command shown (dry-run)
        artifact: Artifact path (the planned path in dry-run mode)
        command: Command line that was, or would have been, executed
    """

    database: str
    status: FetchStatus
    artifact: Path
    command: str | None = None


class BackupFetcher:
    """Downloads remote database dumps into the local backup directory.

    Databases are processed one at a time in configured order. Any failure
    is fatal for the whole run: the remaining databases are not fetched.
    """

    def __init__(
        self,
        config: RunConfig,
        commands: ShellCommands,
        *,
        timestamp: str,
        now: datetime,
    ) -> None:
        """Initialize the fetcher.

        Args:
            config: Resolved run configuration
            commands: Shell command executor
            timestamp: Run timestamp stamped into new artifact names
            now: Reference time for the freshness check
        """
        self._config = config
        self._commands = commands
        self._timestamp = timestamp
        self._now = now
        self._store = ArtifactStore(config.backup_dir)

    def remote_dump_command(self, database: str) -> str:
        """Shell string run on the remote host.

        The ``docker exec ... pg_dump | gzip`` pipeline runs under
        ``bash -o pipefail`` so ssh exits non-zero when pg_dump fails, even
        after it has already written part of the dump.
        """
        dump = self._commands.docker.pg_dump_command(
            self._config.remote_container, self._config.remote_db_user, database
        )
        pipeline = f"{shlex.join(dump)} | gzip"
        return shlex.join(["bash", "-o", "pipefail", "-c", pipeline])

    def fetch_all(self) -> list[FetchResult]:
        """Fetch (or reuse) a backup for every configured database.

        Raises:
            RemoteFetchError: On the first failed or empty dump
        """
        if not self._config.dry_run:
            self._config.backup_dir.mkdir(parents=True, exist_ok=True)
        return [self.fetch(database) for database in self._config.databases]

    def fetch(self, database: str) -> FetchResult:
        """Fetch a backup for one database unless a fresh one exists."""
        fresh = self._store.find_fresh(database, self._now)
        if fresh is not None:
            logger.info(f"Found recent backup for {database} ({fresh.path}). Using it.")
            return FetchResult(database=database, status="reused", artifact=fresh.path)

        logger.info(f"No recent backup for {database}. Downloading new one...")
        target = artifact_path(self._config.backup_dir, database, self._timestamp)
        remote_command = self.remote_dump_command(database)
        ssh_target = self._config.ssh_target
        command_line = (
            f"{format_command(SshCommands.command(ssh_target, remote_command))}"
            f" > {shlex.quote(str(target))}"
        )

        if self._config.dry_run:
            logger.info(f"DRY RUN: {command_line}")
            return FetchResult(
                database=database, status="dry-run", artifact=target, command=command_line
            )

        logger.debug(f"Running: {command_line}")
        try:
            with open(target, "wb") as sink:
                result = self._commands.ssh.stream_to(ssh_target, remote_command, sink)
        except OSError as e:
            self._discard(target)
            raise RemoteFetchError(
                f"Could not fetch backup for {database}: {e}"
            ) from e
        except BaseException:
            # Interrupted or timed out: a partial dump must not look fresh
            self._discard(target)
            raise

        if not result.success:
            self._discard(target)
            raise RemoteFetchError(
                f"Remote dump of {database} failed (exit code {result.returncode})",
                details=result.stderr.strip() or None,
            )

        if target.stat().st_size == 0 or not has_payload(target):
            self._discard(target)
            raise RemoteFetchError(
                f"Backup file for {database} is empty!",
                details=result.stderr.strip() or None,
            )

        logger.info(f"Backup saved to {target}")
        return FetchResult(
            database=database, status="fetched", artifact=target, command=command_line
        )

    @staticmethod
    def _discard(path: Path) -> None:
        """Remove a failed artifact so it is never mistaken for a fresh backup."""
        if path.exists():
            path.unlink()
            logger.debug(f"Removed failed artifact {path}")
