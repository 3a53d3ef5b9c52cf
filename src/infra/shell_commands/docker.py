"""Docker command abstractions.

This module builds ``docker exec`` invocations for the PostgreSQL client
tools living inside database containers: ``pg_dump`` on the remote side and
``psql`` on the local side.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, BinaryIO

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier (e.g. a database name) for PostgreSQL."""
    return '"' + name.replace('"', '""') + '"'


def quote_literal(value: str) -> str:
    """Quote a SQL string literal for PostgreSQL."""
    return "'" + value.replace("'", "''") + "'"


class DockerCommands:
    """Docker-related shell commands.

    Provides operations for:
    - Building ``docker exec`` argv lists (used locally and inside ssh)
    - Running single SQL statements through ``psql`` in a container
    - Streaming a SQL script into ``psql`` in a container
    """

    def __init__(self, runner: CommandRunner) -> None:
        """Initialize Docker commands.

        Args:
            runner: Command runner for executing shell commands
        """
        self._runner = runner

    # =========================================================================
    # Command Builders
    # =========================================================================

    @staticmethod
    def exec_command(
        container: str, args: Sequence[str], *, interactive: bool = False
    ) -> list[str]:
        """Build a ``docker exec`` argv.

        Args:
            container: Container name or id
            args: Command to run inside the container
            interactive: Keep stdin open (``-i``), required when piping input

        Example:
            >>> DockerCommands.exec_command("sql_db", ["psql", "-l"], interactive=True)
            ['docker', 'exec', '-i', 'sql_db', 'psql', '-l']
        """
        cmd = ["docker", "exec"]
        if interactive:
            cmd.append("-i")
        cmd.append(container)
        cmd.extend(args)
        return cmd

    def pg_dump_command(self, container: str, user: str, database: str) -> list[str]:
        """Build the ``pg_dump`` argv for a plain SQL dump without ownership/ACLs.

        No TTY is requested: a pseudo-terminal would rewrite line endings in
        the dump stream.
        """
        return self.exec_command(
            container,
            ["pg_dump", "--no-owner", "--no-acl", "-U", user, database],
        )

    def psql_list_command(self, container: str, user: str) -> list[str]:
        """Build the ``psql -lqt`` argv that lists databases in a container."""
        return self.exec_command(
            container, ["psql", "-U", user, "-lqt"], interactive=True
        )

    def psql_command(
        self,
        container: str,
        user: str,
        sql: str,
        *,
        tuples_only: bool = False,
    ) -> list[str]:
        """Build a ``psql -c`` argv for a single statement.

        Args:
            container: Local database container
            user: Database user to connect as
            sql: Statement to execute
            tuples_only: Print bare, unaligned rows (``-tA``)
        """
        args = ["psql", "-U", user]
        if tuples_only:
            args.append("-tA")
        args.extend(["-c", sql])
        return self.exec_command(container, args, interactive=True)

    def psql_load_command(self, container: str, user: str, database: str) -> list[str]:
        """Build the ``psql`` argv that loads a script from stdin.

        Loading stops at the first failing statement and reports errors with
        full verbosity and context.
        """
        return self.exec_command(
            container,
            [
                "psql",
                "-U",
                user,
                "-d",
                database,
                "-v",
                "ON_ERROR_STOP=1",
                "--set",
                "VERBOSITY=verbose",
                "--set",
                "SHOW_CONTEXT=always",
            ],
            interactive=True,
        )

    # =========================================================================
    # Execution
    # =========================================================================

    def psql(
        self,
        container: str,
        user: str,
        sql: str,
        *,
        tuples_only: bool = False,
    ) -> CommandResult:
        """Run a single SQL statement in a container via ``psql``."""
        return self._runner.run(
            self.psql_command(container, user, sql, tuples_only=tuples_only)
        )

    def database_exists(self, container: str, user: str, database: str) -> CommandResult:
        """Query ``pg_database`` for ``database``.

        The returned result's stdout is ``"1"`` when the database exists and
        empty when it does not. Callers must check ``success`` first: a failed
        query says nothing about existence.
        """
        sql = f"SELECT 1 FROM pg_database WHERE datname = {quote_literal(database)}"
        return self.psql(container, user, sql, tuples_only=True)

    def drop_database(self, container: str, user: str, database: str) -> CommandResult:
        """Drop ``database``."""
        return self.psql(container, user, f"DROP DATABASE {quote_identifier(database)}")

    def create_database(
        self, container: str, user: str, database: str
    ) -> CommandResult:
        """Create an empty ``database``."""
        return self.psql(
            container, user, f"CREATE DATABASE {quote_identifier(database)}"
        )

    def load_sql(
        self, container: str, user: str, database: str, source: BinaryIO
    ) -> CommandResult:
        """Stream a plain SQL script from ``source`` into ``database``."""
        return self._runner.stream_from(
            self.psql_load_command(container, user, database), source
        )
