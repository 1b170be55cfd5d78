"""Base executor class."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


class SpawnError(Exception):
    """Raised when an external process cannot be started at all.

    A process that starts and exits non-zero is not an error at this layer.
    """

    def __init__(self, command: str, reason: str) -> None:
        self.command = command
        self.reason = reason
        super().__init__(f"Cannot run '{command}': {reason}")


class Executor(ABC):
    """Base class for running external commands."""

    name: str
    label: str = "exec"

    def _log_line(self, source: str, line: str) -> None:
        """Forward one line of process output to the diagnostic log."""
        logger.debug("[%s] (%s) %s", self.label, source, line)

    @abstractmethod
    async def exec(
        self,
        command: str,
        args: Sequence[str],
        cwd: Path | str,
    ) -> int:
        """Run `command` with `args` in `cwd` and return its exit code.

        Raises SpawnError when the process cannot be started.
        """
        ...
