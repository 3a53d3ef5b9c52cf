"""Error types raised by the sync workflow."""


class DbSyncError(Exception):
    """Base class for sync failures that are reported to the operator."""

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigError(DbSyncError):
    """The run configuration could not be resolved. Fatal."""


class RemoteFetchError(DbSyncError):
    """A remote dump failed or produced an empty artifact. Fatal for the run."""


class RestoreLookupError(DbSyncError):
    """No usable artifact exists for a database. Only that database is skipped."""


class RestoreLoadError(DbSyncError):
    """Recreating or loading a local database failed. Only that database is affected."""
