"""Shared fixtures: a recording executor that fakes the external tools."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any

import pytest

from plugmatrix.executors.base import Executor, SpawnError

SCAFFOLD_MANIFEST: dict[str, Any] = {
    "name": "placeholder",
    "description": "oclif example Hello World CLI",
    "version": "0.0.0",
    "author": "test",
    "bin": {"mycli": "./bin/run.js"},
    "dependencies": {"@oclif/core": "^4"},
    "files": ["/bin", "/dist", "/oclif.manifest.json"],
    "scripts": {
        "build": "shx rm -rf dist && tsc -b",
        "lint": "eslint . --ext .ts",
        "posttest": "yarn lint",
        "prepack": "oclif manifest && oclif readme",
        "test": "mocha --forbid-only \"test/**/*.test.ts\"",
    },
}


def write_scaffold(directory: Path, name: str) -> Path:
    """Create what `oclif generate <name> --defaults` would leave behind."""
    plugin = directory / name
    plugin.mkdir(parents=True)
    manifest = dict(SCAFFOLD_MANIFEST, name=name)
    (plugin / "package.json").write_text(json.dumps(manifest, indent=2))
    (plugin / "yarn.lock").write_text("# yarn lockfile v1\n")
    (plugin / "node_modules").mkdir()
    return plugin


Call = tuple[str, tuple[str, ...], Path]


class RecordingExecutor(Executor):
    """Executor that records calls instead of spawning processes.

    `exit_codes` maps a command line ("npm install") to its exit code;
    anything unlisted exits 0. The `generate` subcommand writes a scaffold.
    """

    name = "recording"

    def __init__(
        self,
        label: str = "test",
        exit_codes: dict[str, int] | None = None,
        missing: Sequence[str] = (),
        on_exec: Callable[[str, tuple[str, ...], Path], None] | None = None,
    ) -> None:
        self.label = label
        self.calls: list[Call] = []
        self._exit_codes = exit_codes or {}
        self._missing = set(missing)
        self._on_exec = on_exec

    @property
    def command_lines(self) -> list[str]:
        return [" ".join([command, *args]) for command, args, _ in self.calls]

    async def exec(self, command: str, args: Sequence[str], cwd: Path | str) -> int:
        await asyncio.sleep(0)
        args = tuple(arg for arg in args if arg)
        cwd = Path(cwd)
        if command in self._missing:
            raise SpawnError(command, "executable not found")
        self.calls.append((command, args, cwd))
        if args[:1] == ("generate",) and len(args) > 1:
            write_scaffold(cwd, args[1])
        if self._on_exec is not None:
            self._on_exec(command, args, cwd)
        return self._exit_codes.get(" ".join([command, *args]), 0)


class ExecutorPool:
    """Executor factory handing out one RecordingExecutor per label."""

    def __init__(self, **kwargs: Any) -> None:
        self._kwargs = kwargs
        self.executors: dict[str, RecordingExecutor] = {}

    def __call__(self, label: str) -> RecordingExecutor:
        executor = RecordingExecutor(label=label, **self._kwargs)
        self.executors[label] = executor
        return executor


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def executor_pool() -> Callable[..., ExecutorPool]:
    """Build an executor factory; keyword arguments go to every executor."""
    return ExecutorPool


@pytest.fixture
def scaffold() -> Callable[[Path, str], Path]:
    return write_scaffold
