import contextlib
import sys
from collections.abc import Callable
from pathlib import Path

import pytest
from loguru import logger

from src.infra.postgres.config import RunConfig
from src.infra.shell_commands import ShellCommands
from tests.helpers import FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def commands(fake_runner: FakeRunner) -> ShellCommands:
    return ShellCommands(runner=fake_runner)  # type: ignore[arg-type]


@pytest.fixture
def backup_dir(tmp_path: Path) -> Path:
    return tmp_path / "backups"


@pytest.fixture
def make_config(tmp_path: Path, backup_dir: Path) -> Callable[..., RunConfig]:
    """Build a RunConfig pointing at the per-test backup directory."""

    def _make(**overrides) -> RunConfig:
        values = {
            "remote_user": "deploy",
            "remote_host": "db.example.com",
            "remote_container": "postgres",
            "remote_db_user": "postgres",
            "local_container": "sql_db",
            "local_db_user": "postgres",
            "databases": ("app",),
            "backup_dir": backup_dir,
            "log_file": tmp_path / "db_sync.log",
        }
        values.update(overrides)
        return RunConfig(**values)

    return _make


@pytest.fixture
def log_messages():
    """Capture loguru records as ``"LEVEL: message"`` strings."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda m: messages.append(f"{m.record['level'].name}: {m.record['message']}"),
        level="DEBUG",
    )
    yield messages
    # configure_logging() may already have removed it
    with contextlib.suppress(ValueError):
        logger.remove(handler_id)


@pytest.fixture(autouse=True)
def _reset_loguru():
    yield
    logger.remove()
    logger.add(sys.stderr)
