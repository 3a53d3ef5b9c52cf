"""Shell command abstractions for database sync operations.

This package provides a small, typed interface over the external tools the
sync workflow drives. It is organized into specialized modules for each tool:

- ssh: Remote command execution over a non-interactive ssh channel
- docker: ``docker exec`` wrappers for ``pg_dump`` and ``psql``

Usage:
    from src.infra.shell_commands import ShellCommands

    commands = ShellCommands()
    result = commands.docker.database_exists("sql_db", "postgres", "app")
"""

from pathlib import Path

from .docker import DockerCommands, quote_identifier, quote_literal
from .runner import CommandRunner
from .ssh import SshCommands, SshTarget
from .types import CommandResult, format_command


class ShellCommands:
    """Unified interface for all shell command operations.

    Attributes:
        runner: Shared low-level command runner
        ssh: Remote execution commands
        docker: Docker / PostgreSQL client commands
    """

    def __init__(
        self,
        working_dir: Path | None = None,
        *,
        runner: CommandRunner | None = None,
    ) -> None:
        """Initialize the shell commands executor.

        Args:
            working_dir: Directory commands are executed from
            runner: Pre-built runner (tests inject a recording fake here)
        """
        self.runner = runner or CommandRunner(working_dir)
        self.ssh = SshCommands(self.runner)
        self.docker = DockerCommands(self.runner)


__all__ = [
    "ShellCommands",
    "CommandResult",
    "CommandRunner",
    "DockerCommands",
    "SshCommands",
    "SshTarget",
    "format_command",
    "quote_identifier",
    "quote_literal",
]
