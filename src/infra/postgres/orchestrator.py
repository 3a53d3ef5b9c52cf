"""Sync orchestration: fetch every database, then restore every database."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from loguru import logger

from src.infra.shell_commands import ShellCommands

from .artifacts import format_timestamp
from .backup import BackupFetcher, FetchResult
from .config import RunConfig
from .restore import RestoreApplier, RestoreResult


@dataclass
class SyncReport:
    """What happened to each database during a run."""

    timestamp: str
    fetches: list[FetchResult] = field(default_factory=list)
    restores: list[RestoreResult] = field(default_factory=list)

    @property
    def failed_restores(self) -> list[RestoreResult]:
        return [r for r in self.restores if r.status == "failed"]

    @property
    def success(self) -> bool:
        """Whether no database failed to load. Missing artifacts do not count."""
        return not self.failed_restores


class SyncOrchestrator:
    """Runs the backup fetch phase followed by the restore phase.

    The phases never interleave: every database is fetched before the first
    one is restored, and a fatal fetch error prevents any restore.
    """

    def __init__(
        self,
        config: RunConfig,
        commands: ShellCommands | None = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.commands = commands or ShellCommands()
        self._clock = clock

    def run(self) -> SyncReport:
        """Execute one sync run.

        Raises:
            RemoteFetchError: If a backup cannot be fetched (restore is not attempted)
        """
        now = self._clock()
        report = SyncReport(timestamp=format_timestamp(now))
        mode = " (dry run)" if self.config.dry_run else ""
        logger.info(
            f"Starting sync of {', '.join(self.config.databases)} from "
            f"{self.config.remote_host} into {self.config.local_container}{mode}"
        )

        fetcher = BackupFetcher(
            self.config, self.commands, timestamp=report.timestamp, now=now
        )
        report.fetches = fetcher.fetch_all()

        # In dry-run nothing was written; restore describes the planned files
        planned = {
            f.database: f.artifact for f in report.fetches if f.status == "dry-run"
        }
        applier = RestoreApplier(self.config, self.commands, planned=planned)
        report.restores = applier.restore_all()

        if report.success:
            logger.info("Sync finished")
        else:
            failed = ", ".join(r.database for r in report.failed_restores)
            logger.error(f"Sync finished with failed restores: {failed}")
        return report
