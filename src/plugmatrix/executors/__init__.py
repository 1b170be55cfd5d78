"""Executor factory and utilities."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from plugmatrix.executors.base import Executor, SpawnError
from plugmatrix.executors.shell import ShellExecutor, build_command_line

ExecutorFactory = Callable[[str], Executor]


def get_executor(label: str = "exec") -> Executor:
    """Get an executor whose diagnostic output is tagged with `label`."""
    return ShellExecutor(label=label)


async def execute(
    command: str,
    args: Sequence[str],
    cwd: Path | str,
    label: str = "exec",
) -> int:
    """Run a single command with a one-off executor and return its exit code."""
    return await get_executor(label).exec(command, args, cwd)


__all__ = [
    "Executor",
    "ExecutorFactory",
    "ShellExecutor",
    "SpawnError",
    "build_command_line",
    "execute",
    "get_executor",
]
