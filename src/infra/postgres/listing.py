"""Listing databases on the remote server."""

from __future__ import annotations

import shlex

from loguru import logger

from src.infra.constants import DEFAULT_CONSTANTS
from src.infra.shell_commands import ShellCommands, SshCommands, format_command

from .config import RunConfig
from .errors import RemoteFetchError


def parse_database_listing(output: str) -> list[str]:
    """Extract database names from ``psql -lqt`` output.

    Each row is ``name | owner | encoding | ...``; continuation rows for
    multi-line access privileges have an empty first column.
    """
    names: list[str] = []
    for line in output.splitlines():
        name = line.split("|", 1)[0].strip()
        if not name or name in DEFAULT_CONSTANTS.TEMPLATE_DATABASES:
            continue
        names.append(name)
    return names


def list_remote_databases(config: RunConfig, commands: ShellCommands) -> list[str]:
    """Return the databases of the remote container, in server order.

    Returns an empty list in dry-run mode after logging the command.

    Raises:
        RemoteFetchError: If the ssh or psql invocation fails
    """
    logger.info("Fetching list of databases from remote Postgres...")
    remote_command = shlex.join(
        commands.docker.psql_list_command(
            config.remote_container, config.remote_db_user
        )
    )

    if config.dry_run:
        argv = SshCommands.command(config.ssh_target, remote_command)
        logger.info(f"DRY RUN: {format_command(argv)}")
        return []

    result = commands.ssh.run(config.ssh_target, remote_command)
    if not result.success:
        raise RemoteFetchError(
            f"Listing databases on {config.remote_host} failed (exit code {result.returncode})",
            details=result.stderr.strip() or None,
        )
    return parse_database_listing(result.stdout)
