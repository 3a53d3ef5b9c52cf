"""Command runner for executing shell commands.

This module provides the base command execution functionality used by
the ssh and docker command modules. Besides plain captured execution it
offers two streaming primitives used by the sync workflow: piping a
command's stdout into a binary sink, and piping a binary source into a
command's stdin.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import BinaryIO

from .types import CommandResult

# Chunk size for stdin streaming
STREAM_CHUNK_SIZE = 64 * 1024


class CommandRunner:
    """Low-level command executor with consistent result handling.

    All specialized command modules (ssh, docker) use this runner for
    actual command execution, which keeps them trivially fakeable in tests.
    """

    def __init__(self, working_dir: Path | None = None) -> None:
        """Initialize the command runner.

        Args:
            working_dir: Directory commands are executed from.
                         Defaults to the current working directory.
        """
        self.working_dir = working_dir

    def run(
        self,
        cmd: Sequence[str],
        *,
        capture_output: bool = True,
        check: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command and return structured result.

        Args:
            cmd: Command and arguments as a sequence
            capture_output: Whether to capture stdout/stderr
            check: Whether to raise exception on non-zero exit code
            timeout: Seconds to wait before the command is killed

        Returns:
            CommandResult with success status, output, and return code

        Raises:
            subprocess.CalledProcessError: If check=True and command fails
            subprocess.TimeoutExpired: If the timeout elapses
        """
        result = subprocess.run(
            list(cmd),
            cwd=self.working_dir,
            capture_output=capture_output,
            text=True,
            check=check,
            timeout=timeout,
        )
        return CommandResult(
            success=result.returncode == 0,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
            returncode=result.returncode,
            args=list(cmd),
        )

    def stream_to(
        self,
        cmd: Sequence[str],
        sink: BinaryIO,
        *,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command writing its raw stdout into ``sink``.

        Standard error is captured and returned as text. Standard output is
        never buffered in memory, so this is safe for multi-gigabyte dumps.

        Args:
            cmd: Command and arguments
            sink: Binary file object receiving stdout
            timeout: Seconds to wait before the command is killed

        Returns:
            CommandResult with empty stdout
        """
        process = subprocess.Popen(
            list(cmd),
            cwd=self.working_dir,
            stdin=subprocess.DEVNULL,
            stdout=sink,
            stderr=subprocess.PIPE,
        )
        try:
            _, stderr = process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.communicate()
            raise

        return CommandResult(
            success=process.returncode == 0,
            stdout="",
            stderr=stderr.decode(errors="replace") if stderr else "",
            returncode=process.returncode,
            args=list(cmd),
        )

    def stream_from(
        self,
        cmd: Sequence[str],
        source: BinaryIO,
        *,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute a command feeding ``source`` into its stdin.

        Standard output is discarded. Standard error is spooled to a temporary
        file rather than a pipe so a chatty process can never block while we
        are still writing its input.

        If the process exits early (e.g. psql with ON_ERROR_STOP) the broken
        pipe is not an error in itself; the exit code decides.

        Args:
            cmd: Command and arguments
            source: Binary file object to copy into stdin
            timeout: Seconds to wait for exit once input is exhausted

        Returns:
            CommandResult with empty stdout
        """
        with tempfile.TemporaryFile() as stderr_file:
            process = subprocess.Popen(
                list(cmd),
                cwd=self.working_dir,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=stderr_file,
            )
            assert process.stdin is not None
            try:
                shutil.copyfileobj(source, process.stdin, STREAM_CHUNK_SIZE)
            except BrokenPipeError:
                pass
            finally:
                try:
                    process.stdin.close()
                except BrokenPipeError:
                    pass

            try:
                process.wait(timeout=timeout)
            except subprocess.TimeoutExpired:
                process.kill()
                process.wait()
                raise

            stderr_file.seek(0)
            stderr = stderr_file.read().decode(errors="replace")

        return CommandResult(
            success=process.returncode == 0,
            stdout="",
            stderr=stderr,
            returncode=process.returncode,
            args=list(cmd),
        )
