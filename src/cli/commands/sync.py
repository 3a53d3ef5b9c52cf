"""The ``sync`` command: pull remote PostgreSQL databases into a local container."""

from pathlib import Path
from typing import Annotated, Any

import typer
from rich.table import Table

from src.cli.shared.console import console, with_error_handling
from src.infra.constants import DEFAULT_SETTINGS
from src.infra.logging_config import configure_logging
from src.infra.postgres import (
    SyncOrchestrator,
    SyncReport,
    clean_backups,
    list_remote_databases,
    resolve_clean_target,
    resolve_config,
)
from src.infra.shell_commands import ShellCommands

_STATUS_STYLES = {
    "fetched": "green",
    "reused": "yellow",
    "restored": "green",
    "missing": "red",
    "failed": "bold red",
    "skipped": "dim",
    "dry-run": "cyan",
}


def _styled(status: str) -> str:
    style = _STATUS_STYLES.get(status, "white")
    return f"[{style}]{status}[/{style}]"


def render_report(report: SyncReport) -> Table:
    """Build the per-database summary table for a finished run."""
    table = Table(title=f"Sync run {report.timestamp}")
    table.add_column("Database", style="cyan")
    table.add_column("Backup")
    table.add_column("Artifact", style="dim")
    table.add_column("Restore")

    restores = {r.database: r for r in report.restores}
    for fetch in report.fetches:
        restore = restores.get(fetch.database)
        table.add_row(
            fetch.database,
            _styled(fetch.status),
            fetch.artifact.name,
            _styled(restore.status) if restore else "-",
        )
    return table


@with_error_handling
def sync(
    remote_user: Annotated[
        str | None, typer.Option("--remote-user", help="Remote SSH user")
    ] = None,
    remote_host: Annotated[
        str | None, typer.Option("--remote-host", help="Remote server host")
    ] = None,
    remote_container: Annotated[
        str | None,
        typer.Option("--remote-container", help="Remote Postgres docker container"),
    ] = None,
    remote_db_user: Annotated[
        str | None,
        typer.Option("--remote-db-user", help="Postgres user inside remote container"),
    ] = None,
    databases: Annotated[
        str | None,
        typer.Option(
            "--databases", help="Space-separated list of databases, e.g. 'db1 db2'"
        ),
    ] = None,
    local_container: Annotated[
        str | None,
        typer.Option("--local-container", help="Local docker container to restore into"),
    ] = None,
    local_db_user: Annotated[
        str | None,
        typer.Option("--local-db-user", help="Postgres user inside local container"),
    ] = None,
    backup_dir: Annotated[
        Path | None, typer.Option("--backup-dir", help="Backup directory")
    ] = None,
    log_file: Annotated[
        Path | None, typer.Option("--log-file", help="File the run log is appended to")
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", help="Load settings from a KEY=value config file"),
    ] = None,
    ssh_key: Annotated[
        Path | None, typer.Option("--ssh-key", help="Private key for the SSH connection")
    ] = None,
    connect_timeout: Annotated[
        int | None,
        typer.Option("--connect-timeout", help="SSH connect timeout in seconds"),
    ] = None,
    skip_restore: Annotated[
        bool, typer.Option("--skip-restore", help="Only download backups, skip restore")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show actions without executing")
    ] = False,
    clean: Annotated[
        bool, typer.Option("--clean", help="Delete all local backups and exit")
    ] = False,
    list_databases: Annotated[
        bool,
        typer.Option("--list-databases", help="List databases on the remote server and exit"),
    ] = False,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log executed commands")
    ] = False,
) -> None:
    """Sync PostgreSQL databases from a remote Docker host into a local container.

    Each database is dumped remotely with pg_dump over SSH (unless a local
    backup younger than 24 hours exists), then dropped, recreated and
    restored in the local container.
    """
    log_path = log_file or DEFAULT_SETTINGS.log_file
    configure_logging(log_path, verbose=verbose)

    if clean:
        target = resolve_clean_target(backup_dir, config)
        if clean_backups(target):
            console.ok(f"Local backups in {target} deleted")
        else:
            console.warn(f"No backups to delete in {target}")
        return

    overrides: dict[str, Any] = {
        "remote_user": remote_user,
        "remote_host": remote_host,
        "remote_container": remote_container,
        "remote_db_user": remote_db_user,
        "databases": databases,
        "local_container": local_container,
        "local_db_user": local_db_user,
        "backup_dir": backup_dir,
        "log_file": log_file,
        "ssh_key": ssh_key,
        "connect_timeout": connect_timeout,
        # Flags can only switch these on
        "skip_restore": True if skip_restore else None,
        "dry_run": True if dry_run else None,
    }
    run_config = resolve_config(config, overrides)
    if run_config.log_file != log_path:
        configure_logging(run_config.log_file, verbose=verbose)

    commands = ShellCommands()

    if list_databases:
        console.info(f"Databases on {run_config.remote_host}:")
        for name in list_remote_databases(run_config, commands):
            console.print(name)
        return

    console.print_header("PostgreSQL Sync")
    report = SyncOrchestrator(run_config, commands).run()
    console.print(render_report(report))

    if not report.success:
        console.error(
            f"{len(report.failed_restores)} database(s) failed to restore; see {run_config.log_file}"
        )
        raise typer.Exit(1)
    console.ok("Sync complete")
