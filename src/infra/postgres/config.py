"""Run configuration resolution.

A run is configured from three layers, later layers overriding earlier ones:

1. built-in defaults (``SyncDefaults``)
2. an optional ``KEY=value`` file passed with ``--config``
3. explicit command-line flags

The config file is parsed as static data with python-dotenv. It is never
executed, so it can hold nothing but assignments.
"""

from __future__ import annotations

import shlex
import shutil
from collections.abc import Mapping
from dataclasses import asdict
from pathlib import Path
from typing import Any

from dotenv import dotenv_values
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.infra.constants import DEFAULT_SETTINGS
from src.infra.shell_commands import SshTarget

from .errors import ConfigError

# Config file keys and the RunConfig fields they set
CONFIG_KEYS: dict[str, str] = {
    "REMOTE_USER": "remote_user",
    "REMOTE_HOST": "remote_host",
    "REMOTE_CONTAINER": "remote_container",
    "REMOTE_DB_USER": "remote_db_user",
    "DATABASES": "databases",
    "LOCAL_CONTAINER": "local_container",
    "LOCAL_DB_USER": "local_db_user",
    "BACKUP_DIR": "backup_dir",
    "LOG_FILE": "log_file",
    "SSH_KEY": "ssh_key",
    "CONNECT_TIMEOUT": "connect_timeout",
    "DRY_RUN": "dry_run",
    "SKIP_RESTORE": "skip_restore",
}


def split_databases(value: str) -> list[str]:
    """Split a database list into names, keeping order.

    Accepts a whitespace-separated string (``"app audit"``) as well as a
    shell array literal (``("app" "audit")``) as found in older config files.

    Example:
        >>> split_databases('("app" "audit")')
        ['app', 'audit']
    """
    text = value.strip()
    if text.startswith("(") and text.endswith(")"):
        text = text[1:-1]
    try:
        return shlex.split(text)
    except ValueError as e:
        raise ConfigError(f"Cannot parse database list: {value!r}") from e


class RunConfig(BaseModel):
    """Validated, immutable configuration for one sync run."""

    model_config = ConfigDict(frozen=True)

    remote_user: str = Field(min_length=1)
    remote_host: str = Field(min_length=1)
    remote_container: str = Field(min_length=1)
    remote_db_user: str = Field(min_length=1)
    local_container: str = Field(min_length=1)
    local_db_user: str = Field(min_length=1)
    databases: tuple[str, ...]
    backup_dir: Path
    log_file: Path
    ssh_key: Path | None = None
    connect_timeout: int | None = Field(default=None, gt=0)
    dry_run: bool = False
    skip_restore: bool = False

    @field_validator("databases", mode="before")
    @classmethod
    def _parse_databases(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = split_databases(value)
        if isinstance(value, list | tuple):
            # Drop duplicates, first occurrence wins
            return tuple(dict.fromkeys(name.strip() for name in value if name.strip()))
        return value

    @field_validator("databases")
    @classmethod
    def _require_databases(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("at least one database name is required")
        return value

    @field_validator("ssh_key", "connect_timeout", mode="before")
    @classmethod
    def _blank_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def ssh_target(self) -> SshTarget:
        """Remote host, user and credentials for the ssh channel."""
        return SshTarget(
            user=self.remote_user,
            host=self.remote_host,
            identity_file=self.ssh_key,
            connect_timeout=self.connect_timeout,
        )


def default_values() -> dict[str, Any]:
    """Return the built-in defaults as RunConfig field values."""
    return asdict(DEFAULT_SETTINGS)


def load_config_file(path: Path) -> dict[str, Any]:
    """Read a ``KEY=value`` config file into RunConfig field values.

    Args:
        path: Config file named by the operator

    Returns:
        Field values for every recognised key with a value

    Raises:
        ConfigError: If the file does not exist
    """
    if not path.is_file():
        raise ConfigError(f"Config file {path} not found!")

    logger.info(f"Loading config from {path}")
    values: dict[str, Any] = {}
    for key, value in dotenv_values(path).items():
        field_name = CONFIG_KEYS.get(key.upper())
        if field_name is None:
            logger.warning(f"Ignoring unknown config key '{key}' in {path}")
            continue
        if value is None:
            continue
        values[field_name] = value
    return values


def resolve_config(
    config_file: Path | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> RunConfig:
    """Merge defaults, the config file and flag overrides into a RunConfig.

    Args:
        config_file: Optional config file; a missing file is fatal
        overrides: Field values from command-line flags. ``None`` values mean
                   "flag not given" and never override a lower layer.

    Raises:
        ConfigError: If the file is missing or the merged values are invalid
    """
    values = default_values()
    if config_file is not None:
        values.update(load_config_file(config_file))
    if overrides:
        values.update({k: v for k, v in overrides.items() if v is not None})

    try:
        return RunConfig(**values)
    except ValidationError as e:
        raise ConfigError("Invalid configuration", details=str(e)) from e


def resolve_clean_target(
    backup_dir: Path | None, config_file: Path | None
) -> Path:
    """Work out which backup directory ``--clean`` removes.

    ``--clean`` must succeed regardless of other flags, so an unreadable
    config file only produces a warning here.
    """
    if backup_dir is not None:
        return backup_dir
    if config_file is not None:
        try:
            configured = load_config_file(config_file).get("backup_dir")
        except ConfigError as e:
            logger.warning(f"{e.message} Falling back to the default backup directory.")
        else:
            if configured:
                return Path(configured)
    return DEFAULT_SETTINGS.backup_dir


def clean_backups(backup_dir: Path) -> bool:
    """Delete the whole backup directory tree.

    Returns:
        True if something was deleted, False if the directory did not exist
    """
    logger.info(f"Deleting all local backups in {backup_dir}...")
    if not backup_dir.exists():
        logger.info("Backup directory does not exist, nothing to delete.")
        return False
    shutil.rmtree(backup_dir)
    logger.info("Backups deleted.")
    return True
