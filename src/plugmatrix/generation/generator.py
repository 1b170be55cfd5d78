"""Single plugin generation: scaffold, then post-process for the ecosystem."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from plugmatrix.config.schema import DEFAULT_CONFIG, PlugmatrixConfig
from plugmatrix.executors import Executor, get_executor
from plugmatrix.generation.base import GenerationTask, PluginExistsError
from plugmatrix.generation.plans import (
    PlanContext,
    RunCommand,
    build_plan,
    run_plan,
)

logger = logging.getLogger(__name__)


def plan_context(task: GenerationTask, config: PlugmatrixConfig) -> PlanContext:
    """Build the plan inputs for `task` from the effective config."""
    return PlanContext(
        name=task.name,
        options=task.options,
        scope=config.scope or "oclif",
        generator=config.generator_command,
        commands=dict(config.commands),
    )


def prepare_target(task: GenerationTask) -> None:
    """Create the output directory and clear (or refuse) an existing plugin."""
    task.directory.mkdir(parents=True, exist_ok=True)
    if task.target.exists():
        if not task.force:
            raise PluginExistsError(task.name, task.target)
        logger.debug("rm -rf %s", task.target)
        shutil.rmtree(task.target)


async def generate_plugin(
    task: GenerationTask,
    config: PlugmatrixConfig | None = None,
    executor: Executor | None = None,
) -> Path:
    """Generate one plugin and return its directory.

    Raises PluginExistsError, SpawnError, StepFailedError, ManifestError or
    EcosystemSetupError; a failure partway leaves the directory as it is.
    """
    config = config or DEFAULT_CONFIG
    executor = executor or get_executor(f"generate:{task.name}")

    for key, value in task.describe().items():
        logger.info("[%s] %s: %s", task.name, key, value)

    prepare_target(task)

    logger.info("[%s] Building template", task.name)
    scaffold = RunCommand(
        config.generator_command,
        ("generate", task.name, "--defaults"),
        "Building template",
    )
    await scaffold.apply(task.directory, executor)

    plan = build_plan(plan_context(task, config))
    await run_plan(plan, task.target, executor)

    logger.info("[%s] Done", task.name)
    return task.target
