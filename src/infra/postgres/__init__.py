"""PostgreSQL remote-to-local sync infrastructure.

This package implements the sync workflow used by the ``db-sync`` CLI:
resolving the run configuration, fetching compressed dumps from a remote
Docker-hosted server over ssh, and restoring them into a local container.
"""

from .artifacts import ArtifactStore, BackupArtifact
from .backup import BackupFetcher, FetchResult
from .config import (
    RunConfig,
    clean_backups,
    load_config_file,
    resolve_clean_target,
    resolve_config,
)
from .errors import (
    ConfigError,
    DbSyncError,
    RemoteFetchError,
    RestoreLoadError,
    RestoreLookupError,
)
from .listing import list_remote_databases
from .orchestrator import SyncOrchestrator, SyncReport
from .restore import RestoreApplier, RestoreResult

__all__ = [
    "ArtifactStore",
    "BackupArtifact",
    "BackupFetcher",
    "FetchResult",
    "RestoreApplier",
    "RestoreResult",
    "RunConfig",
    "SyncOrchestrator",
    "SyncReport",
    "clean_backups",
    "list_remote_databases",
    "load_config_file",
    "resolve_clean_target",
    "resolve_config",
    "ConfigError",
    "DbSyncError",
    "RemoteFetchError",
    "RestoreLoadError",
    "RestoreLookupError",
]
