"""Shared test doubles and artifact helpers."""

import gzip
import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from src.infra.shell_commands import CommandResult

# Fixed "now" for every run under test; artifact mtimes are set relative to it
FIXED_NOW = datetime(2026, 10, 18, 12, 0, 0)
FIXED_STAMP = "20261018_120000"

SAMPLE_DUMP = b"CREATE TABLE items (id integer);\nINSERT INTO items VALUES (1);\n"


def ok_result(cmd: list[str], stdout: str = "") -> CommandResult:
    return CommandResult(success=True, stdout=stdout, stderr="", returncode=0, args=cmd)


def failed_result(cmd: list[str], stderr: str, returncode: int = 1) -> CommandResult:
    return CommandResult(
        success=False, stdout="", stderr=stderr, returncode=returncode, args=cmd
    )


class FakeRunner:
    """Records commands instead of executing them.

    ``run`` answers via ``run_handler``; ``stream_to`` writes ``dump_payload``
    into the sink; ``stream_from`` reads the whole source into ``loaded``.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.run_handler: Callable[[list[str]], CommandResult] = ok_result
        self.dump_payload: bytes = gzip.compress(SAMPLE_DUMP)
        self.dump_result: CommandResult | None = None
        self.load_result: CommandResult | None = None
        self.loaded: list[bytes] = []

    def run(self, cmd, **kwargs) -> CommandResult:
        self.calls.append(list(cmd))
        return self.run_handler(list(cmd))

    def stream_to(self, cmd, sink, **kwargs) -> CommandResult:
        self.calls.append(list(cmd))
        sink.write(self.dump_payload)
        return self.dump_result or ok_result(list(cmd))

    def stream_from(self, cmd, source, **kwargs) -> CommandResult:
        self.calls.append(list(cmd))
        self.loaded.append(source.read())
        return self.load_result or ok_result(list(cmd))

    def commands_starting_with(self, program: str) -> list[list[str]]:
        return [c for c in self.calls if c and c[0] == program]


def sql_of(cmd: list[str]) -> str:
    """The ``-c`` statement of a psql argv, or an empty string."""
    if "-c" in cmd:
        return cmd[cmd.index("-c") + 1]
    return ""


def write_artifact(
    directory: Path, name: str, modified: datetime, payload: bytes = SAMPLE_DUMP
) -> Path:
    """Create a gzip artifact with the given modification time.

    An empty ``payload`` writes a zero-byte file.
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_bytes(gzip.compress(payload) if payload else b"")
    ts = modified.timestamp()
    os.utime(path, (ts, ts))
    return path
