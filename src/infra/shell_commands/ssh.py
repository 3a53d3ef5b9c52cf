"""SSH command abstractions.

Every remote command is run non-interactively: ``BatchMode`` forbids
password and passphrase prompts, and unknown host keys are accepted and
pinned on first use (``StrictHostKeyChecking=accept-new``). A changed host
key or a missing credential therefore fails the command instead of hanging.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from .types import CommandResult

if TYPE_CHECKING:
    from .runner import CommandRunner

SSH_BASE_OPTIONS: tuple[str, ...] = (
    "-o",
    "BatchMode=yes",
    "-o",
    "StrictHostKeyChecking=accept-new",
)


@dataclass(frozen=True)
class SshTarget:
    """Connection details for a remote host.

    Attributes:
        user: Remote login user
        host: Remote hostname or address
        identity_file: Private key passed with ``-i``
        connect_timeout: Seconds before the TCP connect is abandoned
    """

    user: str
    host: str
    identity_file: Path | None = None
    connect_timeout: int | None = None

    @property
    def destination(self) -> str:
        return f"{self.user}@{self.host}"


class SshCommands:
    """Runs shell commands on a remote host over ssh."""

    def __init__(self, runner: CommandRunner) -> None:
        self._runner = runner

    @staticmethod
    def command(target: SshTarget, remote_command: str) -> list[str]:
        """Build the local ssh argv that executes ``remote_command``.

        Args:
            target: Remote host and credentials
            remote_command: A single shell string evaluated by the remote
                            login shell (pipes are allowed)

        Example:
            >>> SshCommands.command(SshTarget("me", "db.example.com"), "uptime")
            ['ssh', '-o', 'BatchMode=yes', '-o', 'StrictHostKeyChecking=accept-new', 'me@db.example.com', 'uptime']
        """
        cmd = ["ssh", *SSH_BASE_OPTIONS]
        if target.connect_timeout is not None:
            cmd.extend(["-o", f"ConnectTimeout={target.connect_timeout}"])
        if target.identity_file is not None:
            cmd.extend(["-i", str(target.identity_file)])
        cmd.append(target.destination)
        cmd.append(remote_command)
        return cmd

    def run(self, target: SshTarget, remote_command: str) -> CommandResult:
        """Run ``remote_command`` and capture its output as text."""
        return self._runner.run(self.command(target, remote_command))

    def stream_to(
        self, target: SshTarget, remote_command: str, sink: BinaryIO
    ) -> CommandResult:
        """Run ``remote_command`` writing its raw stdout into ``sink``."""
        return self._runner.stream_to(self.command(target, remote_command), sink)
