"""Local PostgreSQL restore.

Recreates each configured database in the local container and loads the
most recent artifact into it. Restoring is destructive by design: an
existing database with the same name is always dropped first.
"""

from __future__ import annotations

import gzip
import zlib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from loguru import logger

from src.infra.shell_commands import CommandResult, ShellCommands, format_command
from src.infra.shell_commands.docker import quote_identifier

from .artifacts import ArtifactStore, BackupArtifact
from .config import RunConfig
from .errors import RestoreLoadError, RestoreLookupError

RestoreStatus = Literal["restored", "missing", "failed", "skipped", "dry-run"]


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of the restore step for one database."""

    database: str
    status: RestoreStatus
    artifact: BackupArtifact | None = None
    error: str | None = None


class RestoreApplier:
    """Restores local databases from the newest artifact of each.

    Failures are isolated per database: a missing artifact or a failed load
    is logged and the next database is still restored.
    """

    def __init__(
        self,
        config: RunConfig,
        commands: ShellCommands,
        *,
        planned: Mapping[str, Path] | None = None,
    ) -> None:
        """Initialize the applier.

        Args:
            config: Resolved run configuration
            commands: Shell command executor
            planned: Artifacts a dry-run fetch would have written, by database.
                     They take the place of the latest artifact in dry-run mode.
        """
        self._config = config
        self._commands = commands
        self._planned = dict(planned or {})
        self._store = ArtifactStore(config.backup_dir)

    def restore_all(self) -> list[RestoreResult]:
        """Restore every configured database, in order."""
        if self._config.skip_restore:
            logger.info("Skipping restore (per --skip-restore)")
            return [
                RestoreResult(database=db, status="skipped")
                for db in self._config.databases
            ]

        results: list[RestoreResult] = []
        for database in self._config.databases:
            try:
                results.append(self.restore(database))
            except RestoreLookupError as e:
                logger.error(e.message)
                results.append(
                    RestoreResult(database=database, status="missing", error=e.message)
                )
            except RestoreLoadError as e:
                logger.error(e.message)
                if e.details:
                    logger.error(e.details)
                results.append(
                    RestoreResult(database=database, status="failed", error=e.message)
                )
        return results

    def restore(self, database: str) -> RestoreResult:
        """Recreate ``database`` locally and load its latest artifact.

        Raises:
            RestoreLookupError: If no usable artifact exists
            RestoreLoadError: If recreating or loading the database fails
        """
        planned = self._planned.get(database) if self._config.dry_run else None
        if planned is not None:
            logger.info(f"Using planned backup: {planned}")
            self._show_plan(database, planned)
            return RestoreResult(database=database, status="dry-run")

        artifact = self._store.latest(database)
        if artifact is None:
            raise RestoreLookupError(
                f"No backup file found for {database} in {self._config.backup_dir}"
            )

        logger.info(f"Using latest backup: {artifact.path}")

        if self._config.dry_run:
            self._show_plan(database, artifact.path)
            return RestoreResult(database=database, status="dry-run", artifact=artifact)

        logger.info(f"Recreating {database} locally...")
        self._recreate(database)

        logger.info(f"Importing {database} into local container...")
        self._load(database, artifact)

        logger.info(f"Restore of {database} done")
        return RestoreResult(database=database, status="restored", artifact=artifact)

    def _recreate(self, database: str) -> None:
        c = self._config
        docker = self._commands.docker

        exists = docker.database_exists(c.local_container, c.local_db_user, database)
        # A failed lookup is not "absent": it would mask a broken local store
        _require(exists, f"Could not check whether {database} exists locally")

        if exists.stdout.strip() == "1":
            _require(
                docker.drop_database(c.local_container, c.local_db_user, database),
                f"Could not drop local database {database}",
            )

        _require(
            docker.create_database(c.local_container, c.local_db_user, database),
            f"Could not create local database {database}",
        )

    def _load(self, database: str, artifact: BackupArtifact) -> None:
        c = self._config
        try:
            with gzip.open(artifact.path, "rb") as source:
                result = self._commands.docker.load_sql(
                    c.local_container, c.local_db_user, database, source
                )
        except (OSError, EOFError, zlib.error) as e:
            raise RestoreLoadError(
                f"Could not read backup {artifact.path} for {database}: {e}"
            ) from e

        _require(result, f"Import of {database} from {artifact.path.name} failed")

    def _show_plan(self, database: str, source: Path) -> None:
        c = self._config
        docker = self._commands.docker
        steps = [
            docker.psql_command(
                c.local_container,
                c.local_db_user,
                f"DROP DATABASE IF EXISTS {quote_identifier(database)}",
            ),
            docker.psql_command(
                c.local_container,
                c.local_db_user,
                f"CREATE DATABASE {quote_identifier(database)}",
            ),
        ]
        for step in steps:
            logger.info(f"DRY RUN: {format_command(step)}")

        load = docker.psql_load_command(c.local_container, c.local_db_user, database)
        logger.info(
            f"DRY RUN: gunzip -c {source} | {format_command(load)} > /dev/null"
        )


def _require(result: CommandResult, message: str) -> None:
    """Raise RestoreLoadError carrying psql's stderr if ``result`` failed."""
    if not result.success:
        logger.debug(f"Failed command: {result.command_line}")
        raise RestoreLoadError(
            f"{message} (exit code {result.returncode})",
            details=result.stderr.strip() or None,
        )
