"""Tests for RestoreApplier."""

from datetime import datetime

import pytest

from src.infra.postgres.errors import RestoreLookupError
from src.infra.postgres.restore import RestoreApplier
from tests.helpers import SAMPLE_DUMP, failed_result, ok_result, sql_of, write_artifact


def existing_databases(*names):
    """run_handler answering the pg_database lookup for ``names``."""

    def handler(cmd):
        sql = sql_of(cmd)
        if sql.startswith("SELECT 1 FROM pg_database"):
            found = any(f"'{name}'" in sql for name in names)
            return ok_result(cmd, "1\n" if found else "")
        return ok_result(cmd)

    return handler


def test_restore_drops_creates_and_loads(make_config, commands, fake_runner, backup_dir):
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))
    fake_runner.run_handler = existing_databases("app")

    results = RestoreApplier(make_config(), commands).restore_all()

    assert results[0].status == "restored"
    statements = [sql_of(c) for c in fake_runner.calls if sql_of(c)]
    assert statements == [
        "SELECT 1 FROM pg_database WHERE datname = 'app'",
        'DROP DATABASE "app"',
        'CREATE DATABASE "app"',
    ]
    assert fake_runner.loaded == [SAMPLE_DUMP]
    load_cmd = fake_runner.calls[-1]
    assert load_cmd[:4] == ["docker", "exec", "-i", "sql_db"]
    assert "ON_ERROR_STOP=1" in load_cmd


def test_restore_skips_drop_for_new_database(make_config, commands, fake_runner, backup_dir):
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))
    fake_runner.run_handler = existing_databases()

    RestoreApplier(make_config(), commands).restore_all()

    statements = [sql_of(c) for c in fake_runner.calls if sql_of(c)]
    assert not any(s.startswith("DROP") for s in statements)
    assert 'CREATE DATABASE "app"' in statements


def test_restore_picks_latest_artifact(make_config, commands, fake_runner, backup_dir):
    write_artifact(
        backup_dir, "db_20240101_0000.sql.gz", datetime(2024, 1, 1), b"-- january\n"
    )
    write_artifact(
        backup_dir, "db_20240601_0000.sql.gz", datetime(2024, 6, 1), b"-- june\n"
    )

    results = RestoreApplier(make_config(databases=("db",)), commands).restore_all()

    assert results[0].artifact.path.name == "db_20240601_0000.sql.gz"
    assert fake_runner.loaded == [b"-- june\n"]


def test_missing_artifact_is_not_fatal(
    make_config, commands, fake_runner, backup_dir, log_messages
):
    write_artifact(backup_dir, "audit_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))

    results = RestoreApplier(
        make_config(databases=("app", "audit")), commands
    ).restore_all()

    assert [(r.database, r.status) for r in results] == [
        ("app", "missing"),
        ("audit", "restored"),
    ]
    assert any(m.startswith("ERROR: No backup file found for app") for m in log_messages)


def test_restore_raises_lookup_error_for_single_database(make_config, commands):
    with pytest.raises(RestoreLookupError):
        RestoreApplier(make_config(), commands).restore("app")


def test_load_failure_is_isolated(make_config, commands, fake_runner, backup_dir, log_messages):
    """Test that a failed load is reported and the next database still restores."""
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))
    write_artifact(backup_dir, "audit_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))
    outcomes = [
        failed_result(["psql"], 'ERROR:  42P07: relation "items" already exists'),
        None,
    ]

    original_stream_from = fake_runner.stream_from

    def stream_from(cmd, source, **kwargs):
        original_stream_from(cmd, source)
        return outcomes.pop(0) or ok_result(cmd)

    fake_runner.stream_from = stream_from

    results = RestoreApplier(
        make_config(databases=("app", "audit")), commands
    ).restore_all()

    assert [(r.database, r.status) for r in results] == [
        ("app", "failed"),
        ("audit", "restored"),
    ]
    assert any("already exists" in m for m in log_messages)


def test_failed_existence_check_is_an_error(make_config, commands, fake_runner, backup_dir):
    """Test that an unreachable local store is not mistaken for 'no database'."""
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))
    fake_runner.run_handler = lambda cmd: failed_result(
        cmd, "Error: No such container: sql_db"
    )

    results = RestoreApplier(make_config(), commands).restore_all()

    assert results[0].status == "failed"
    # Neither CREATE nor the load ran
    assert len(fake_runner.calls) == 1
    assert fake_runner.loaded == []


def test_skip_restore_performs_no_store_operations(
    make_config, commands, fake_runner, backup_dir, log_messages
):
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))

    results = RestoreApplier(make_config(skip_restore=True), commands).restore_all()

    assert [r.status for r in results] == ["skipped"]
    assert fake_runner.calls == []
    assert "INFO: Skipping restore (per --skip-restore)" in log_messages


def test_dry_run_restore_only_logs(make_config, commands, fake_runner, backup_dir, log_messages):
    write_artifact(backup_dir, "app_20261018_080000.sql.gz", datetime(2026, 10, 18, 8))

    results = RestoreApplier(make_config(dry_run=True), commands).restore_all()

    assert results[0].status == "dry-run"
    assert fake_runner.calls == []
    dry = [m for m in log_messages if "DRY RUN" in m]
    assert len(dry) == 3
    assert "gunzip -c" in dry[-1]


def test_dry_run_uses_planned_artifact_without_existing_backup(
    make_config, commands, fake_runner, backup_dir, log_messages
):
    planned = backup_dir / "app_20261018_120000.sql.gz"

    results = RestoreApplier(
        make_config(dry_run=True), commands, planned={"app": planned}
    ).restore_all()

    assert results[0].status == "dry-run"
    assert fake_runner.calls == []
    assert f"INFO: Using planned backup: {planned}" in log_messages
    assert any(f"gunzip -c {planned}" in m for m in log_messages)
    assert not any(m.startswith("ERROR") for m in log_messages)


def test_dry_run_prefers_planned_over_older_artifact(
    make_config, commands, backup_dir, log_messages
):
    write_artifact(backup_dir, "app_20261016_080000.sql.gz", datetime(2026, 10, 16, 8))
    planned = backup_dir / "app_20261018_120000.sql.gz"

    RestoreApplier(
        make_config(dry_run=True), commands, planned={"app": planned}
    ).restore_all()

    assert any(f"gunzip -c {planned}" in m for m in log_messages)


def test_planned_artifacts_ignored_outside_dry_run(make_config, commands, backup_dir):
    """Test that a real restore never trusts a path that was only planned."""
    planned = backup_dir / "app_20261018_120000.sql.gz"

    results = RestoreApplier(
        make_config(), commands, planned={"app": planned}
    ).restore_all()

    assert results[0].status == "missing"
