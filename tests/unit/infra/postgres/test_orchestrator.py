"""Tests for SyncOrchestrator."""

from datetime import timedelta

import pytest

from src.infra.postgres.errors import RemoteFetchError
from src.infra.postgres.orchestrator import SyncOrchestrator
from tests.helpers import FIXED_NOW, FIXED_STAMP, failed_result, ok_result, sql_of, write_artifact


def test_full_run_fetches_then_restores(make_config, commands, fake_runner, backup_dir):
    config = make_config(databases=("app", "audit"))

    report = SyncOrchestrator(config, commands, clock=lambda: FIXED_NOW).run()

    assert report.timestamp == FIXED_STAMP
    assert [f.status for f in report.fetches] == ["fetched", "fetched"]
    assert [r.status for r in report.restores] == ["restored", "restored"]
    assert report.success is True

    programs = [c[0] for c in fake_runner.calls]
    # Both dumps are fetched before anything touches the local store
    assert programs[:2] == ["ssh", "ssh"]
    assert set(programs[2:]) == {"docker"}


def test_fetch_failure_prevents_restore(make_config, commands, fake_runner, backup_dir):
    write_artifact(
        backup_dir, "app_20261018_080000.sql.gz", FIXED_NOW - timedelta(hours=4)
    )
    fake_runner.dump_payload = b""

    with pytest.raises(RemoteFetchError):
        SyncOrchestrator(
            make_config(databases=("app", "audit")), commands, clock=lambda: FIXED_NOW
        ).run()

    assert fake_runner.commands_starting_with("docker") == []


def test_failed_restore_marks_report(make_config, commands, fake_runner):
    def handler(cmd):
        if sql_of(cmd).startswith("CREATE DATABASE"):
            return failed_result(cmd, "permission denied to create database")
        return ok_result(cmd)

    fake_runner.run_handler = handler

    report = SyncOrchestrator(make_config(), commands, clock=lambda: FIXED_NOW).run()

    assert report.success is False
    assert [r.database for r in report.failed_restores] == ["app"]


def test_dry_run_restore_describes_planned_artifact(
    make_config, commands, fake_runner, backup_dir, log_messages
):
    report = SyncOrchestrator(
        make_config(dry_run=True), commands, clock=lambda: FIXED_NOW
    ).run()

    planned = backup_dir / f"app_{FIXED_STAMP}.sql.gz"
    assert [r.status for r in report.restores] == ["dry-run"]
    assert report.success is True
    assert fake_runner.calls == []
    assert f"INFO: Using planned backup: {planned}" in log_messages
    assert not any(m.startswith("ERROR") for m in log_messages)
