"""Shell executor implementation."""

from __future__ import annotations

import asyncio
import logging
import shlex
import shutil
from collections.abc import Sequence
from pathlib import Path

from plugmatrix.executors.base import Executor, SpawnError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 65536


def build_command_line(command: str, args: Sequence[str]) -> str:
    """Join a command and its arguments into a quoted shell line.

    Empty arguments are dropped.
    """
    return shlex.join([command, *(arg for arg in args if arg)])


class ShellExecutor(Executor):
    """Executor that runs commands through the system shell."""

    name = "shell"

    def __init__(self, label: str = "exec") -> None:
        self.label = label

    async def exec(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path | str,
    ) -> int:
        """Run the command, streaming stdout/stderr lines to the debug log."""
        # The shell reports a missing binary as exit code 127, check up front.
        if shutil.which(command) is None:
            raise SpawnError(command, "executable not found")

        command_line = build_command_line(command, args)
        logger.debug("[%s] %s (cwd: %s)", self.label, command_line, cwd)
        try:
            process = await asyncio.create_subprocess_shell(
                command_line,
                cwd=str(cwd),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise SpawnError(command, str(e)) from e

        assert process.stdout is not None
        assert process.stderr is not None
        try:
            await asyncio.gather(
                self._drain("stdout", process.stdout),
                self._drain("stderr", process.stderr),
            )
        finally:
            exit_code = await process.wait()
        logger.debug("[%s] exited with %d", self.label, exit_code)
        return exit_code

    async def _drain(self, source: str, stream: asyncio.StreamReader) -> None:
        # Lines can be longer than the StreamReader limit.
        tail = b""
        while chunk := await stream.read(READ_CHUNK_SIZE):
            *lines, tail = (tail + chunk).split(b"\n")
            for raw in lines:
                self._log_raw(source, raw)
        if tail:
            self._log_raw(source, tail)

    def _log_raw(self, source: str, raw: bytes) -> None:
        self._log_line(source, raw.decode(errors="replace").rstrip())
