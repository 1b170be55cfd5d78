"""Matrix-driven batch generation.

A matrix file is a list of option maps. Every row that is not skipped
becomes one GenerationTask, parsed through the same flags as the
`generate` command. Tasks run concurrently, optionally in fixed-size
groups: group N+1 starts only after every task of group N has settled.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

import yaml

from plugmatrix.config.schema import PlugmatrixConfig
from plugmatrix.executors import ExecutorFactory, get_executor
from plugmatrix.generation.base import GenerationTask, TaskValidationError
from plugmatrix.generation.flags import parse_generate_flags
from plugmatrix.generation.generator import generate_plugin

logger = logging.getLogger(__name__)

T = TypeVar("T")

OptionValue = bool | str | list[str] | None

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


class MatrixError(ValueError):
    """Raised for a malformed matrix file or an invalid batch."""


def flag_name(key: str) -> str:
    """Turn a matrix key into a flag name: packageManager -> package-manager."""
    return _CAMEL_BOUNDARY.sub("-", key).replace("_", "-").lower()


@dataclass(frozen=True)
class MatrixRow:
    """One entry of a matrix file."""

    options: dict[str, OptionValue]
    skip: bool = False

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> MatrixRow:
        """Validate and build a row. `index` is used in error messages."""
        if not isinstance(data, dict):
            raise MatrixError(f"Matrix entry {index} is not a mapping")

        options: dict[str, OptionValue] = {}
        skip = False
        for key, value in data.items():
            if not isinstance(key, str):
                raise MatrixError(f"Matrix entry {index}: keys must be strings")
            if key == "skip":
                if not isinstance(value, bool):
                    raise MatrixError(f"Matrix entry {index}: 'skip' must be a boolean")
                skip = value
                continue
            if isinstance(value, list):
                if not all(isinstance(v, str) for v in value):
                    raise MatrixError(
                        f"Matrix entry {index}: '{key}' must be a list of strings"
                    )
                options[key] = list(value)
            elif value is None or isinstance(value, (bool, str)):
                options[key] = value
            else:
                raise MatrixError(
                    f"Matrix entry {index}: '{key}' must be a boolean, string "
                    "or list of strings"
                )
        return cls(options=options, skip=skip)


def load_matrix(path: Path) -> list[MatrixRow]:
    """Read a JSON or YAML matrix file."""
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise MatrixError(f"Cannot parse matrix file {path}: {e}") from e
    if not isinstance(data, list):
        raise MatrixError(f"Matrix file {path} must contain a list of entries")
    return [MatrixRow.from_dict(entry, i) for i, entry in enumerate(data)]


def compile_flags(options: dict[str, OptionValue]) -> list[str]:
    """Flatten a row's options into generate-style argv.

    True becomes a bare flag, a string one flag/value pair and a list one
    pair per item. False and null are dropped.
    """
    argv: list[str] = []
    for key, value in options.items():
        flag = f"--{flag_name(key)}"
        if value is True:
            argv.append(flag)
        elif isinstance(value, list):
            for item in value:
                argv.extend([flag, item])
        elif isinstance(value, str):
            argv.extend([flag, value])
    return argv


def build_tasks(rows: Sequence[MatrixRow], output_directory: Path) -> list[GenerationTask]:
    """Turn non-skipped rows into tasks that always overwrite.

    Every row is validated before any task runs; two tasks resolving to the
    same plugin directory is an error.
    """
    tasks: list[GenerationTask] = []
    seen: dict[Path, int] = {}
    for index, row in enumerate(rows):
        if row.skip:
            logger.debug("Skipping matrix entry %d", index)
            continue
        argv = [*compile_flags(row.options), "--force", "--directory", str(output_directory)]
        try:
            task = parse_generate_flags(argv)
        except TaskValidationError as e:
            raise MatrixError(f"Matrix entry {index}: {e}") from e
        if task.target in seen:
            raise MatrixError(
                f"Matrix entries {seen[task.target]} and {index} both generate "
                f"{task.name}; set a distinct name"
            )
        seen[task.target] = index
        tasks.append(task)
    return tasks


def chunked(items: Sequence[T], size: int) -> list[list[T]]:
    """Split `items` into contiguous groups of `size`, preserving order."""
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass(frozen=True)
class TaskOutcome:
    """Result of one task in a batch."""

    name: str
    target: Path
    group: int
    success: bool
    error: BaseException | None = None


@dataclass
class BatchOutcome:
    """Every task's outcome, in task order."""

    outcomes: list[TaskOutcome] = field(default_factory=list)
    groups: int = 0

    @property
    def succeeded(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if o.success]

    @property
    def failed(self) -> list[TaskOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def ok(self) -> bool:
        return not self.failed


TaskRunner = Callable[[GenerationTask], Awaitable[object]]


async def run_tasks(
    tasks: Sequence[GenerationTask],
    runner: TaskRunner,
    concurrency: int | None = None,
) -> BatchOutcome:
    """Run tasks concurrently, `concurrency` at a time if given.

    A failing task never cancels its siblings; its exception is recorded
    in the outcome instead of being raised.
    """
    if concurrency is not None:
        groups = chunked(tasks, concurrency)
    else:
        groups = [list(tasks)] if tasks else []

    batch = BatchOutcome(groups=len(groups))
    for group_index, group in enumerate(groups):
        logger.info(
            "Running group %d/%d (%d tasks)", group_index + 1, len(groups), len(group)
        )
        results = await asyncio.gather(
            *(runner(task) for task in group), return_exceptions=True
        )
        for task, result in zip(group, results, strict=True):
            if isinstance(result, BaseException):
                logger.warning("Generating %s failed: %s", task.name, result)
                batch.outcomes.append(
                    TaskOutcome(task.name, task.target, group_index, False, result)
                )
            else:
                batch.outcomes.append(
                    TaskOutcome(task.name, task.target, group_index, True)
                )
    return batch


async def run_matrix(
    rows: Sequence[MatrixRow],
    output_directory: Path,
    concurrency: int | None = None,
    config: PlugmatrixConfig | None = None,
    executor_factory: ExecutorFactory = get_executor,
) -> BatchOutcome:
    """Generate one plugin per non-skipped matrix row into `output_directory`."""
    if concurrency is not None and concurrency < 1:
        raise MatrixError(f"Concurrency must be at least 1, got {concurrency}")
    tasks = build_tasks(rows, output_directory)
    if tasks:
        output_directory.mkdir(parents=True, exist_ok=True)

    async def _generate(task: GenerationTask) -> Path:
        return await generate_plugin(
            task, config, executor_factory(f"generate:{task.name}")
        )

    logger.info("Generating %d plugins into %s", len(tasks), output_directory)
    return await run_tasks(tasks, _generate, concurrency)
