"""Data types for shell command results.

This module contains the dataclasses shared by the runner and the
tool-specific command builders.
"""

from __future__ import annotations

import shlex
from collections.abc import Sequence
from dataclasses import dataclass, field

__all__ = [
    "CommandResult",
    "format_command",
]


@dataclass
class CommandResult:
    """Result of a finished shell command.

    Attributes:
        success: Whether the command exited with code 0
        stdout: Captured standard output (empty when streamed to a sink)
        stderr: Captured standard error
        returncode: Process exit code
        args: The argv that was executed
    """

    success: bool
    stdout: str
    stderr: str
    returncode: int
    args: list[str] = field(default_factory=list)

    @property
    def command_line(self) -> str:
        """The executed argv rendered as a copy-pasteable shell line."""
        return format_command(self.args)


def format_command(cmd: Sequence[str]) -> str:
    """Render an argv list as a single shell-quoted line."""
    return shlex.join(list(cmd))
