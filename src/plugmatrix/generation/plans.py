"""Ecosystem post-processing plans.

A plan is the ordered list of steps that turns a freshly scaffolded,
package-manager agnostic project into one set up for its ecosystem:
cleanup, install, lockfile generation and package.json rewrites.
Each ecosystem contributes one plan builder to PLANS.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path

from plugmatrix.ecosystems import NPM, PNPM, YARN, Ecosystem
from plugmatrix.ecosystems.yarn import (
    DEFAULT_YARN_TARGET,
    YARNRC_FILENAME,
    is_legacy_yarn,
    linker_config,
)
from plugmatrix.executors import Executor, SpawnError
from plugmatrix.generation.base import GenerationOptions
from plugmatrix.manifest import (
    ManifestError,
    PluginManifest,
    add_lock_artifact,
    rewrite_scripts,
    scoped_name,
    update_manifest,
)

logger = logging.getLogger(__name__)

YARN_HINT = "is yarn installed globally?"


class StepFailedError(Exception):
    """Raised when a command step exits non-zero."""

    def __init__(self, step: RunCommand, exit_code: int) -> None:
        self.step = step
        self.exit_code = exit_code
        super().__init__(f"'{step.command_line}' failed with exit code {exit_code}")


class EcosystemSetupError(Exception):
    """A setup failure annotated with suggestions for the user."""

    def __init__(self, message: str, suggestions: tuple[str, ...] = ()) -> None:
        self.suggestions = suggestions
        super().__init__(message)


@dataclass(frozen=True)
class RemovePath:
    """Delete a file or directory inside the project. Missing is fine."""

    path: str
    label: str = "Cleaning up"

    async def apply(self, project: Path, executor: Executor) -> None:
        target = project / self.path
        logger.debug("rm -rf %s", target)
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        else:
            target.unlink(missing_ok=True)


@dataclass(frozen=True)
class RunCommand:
    """Run an external command in the project directory."""

    command: str
    args: tuple[str, ...]
    label: str

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args])

    async def apply(self, project: Path, executor: Executor) -> None:
        exit_code = await executor.exec(self.command, self.args, project)
        if exit_code != 0:
            raise StepFailedError(self, exit_code)


@dataclass(frozen=True)
class WriteFile:
    """Write a small text file into the project."""

    path: str
    content: str
    label: str

    async def apply(self, project: Path, executor: Executor) -> None:
        (project / self.path).write_text(self.content, encoding="utf-8")


@dataclass(frozen=True)
class EditManifest:
    """Read-modify-write the project's package.json."""

    edit: Callable[[PluginManifest], None]
    label: str = "Updating package.json"

    async def apply(self, project: Path, executor: Executor) -> None:
        update_manifest(project, self.edit)


Step = RemovePath | RunCommand | WriteFile | EditManifest


@dataclass(frozen=True)
class PlanContext:
    """Inputs a plan builder needs besides the options themselves."""

    name: str
    options: GenerationOptions
    scope: str = "oclif"
    generator: str = "oclif"
    commands: Mapping[str, str] = field(default_factory=dict)

    def command(self, tool: str) -> str:
        return self.commands.get(tool, tool)

    @property
    def publish_name(self) -> str:
        return scoped_name(self.name, self.scope)


@dataclass(frozen=True)
class EcosystemPlan:
    """An ordered list of steps for one ecosystem.

    `hint` is attached to any failure while the plan runs.
    """

    ecosystem: Ecosystem
    steps: tuple[Step, ...]
    hint: str | None = None

    @property
    def commands(self) -> list[str]:
        """Command lines this plan will run, in order."""
        return [s.command_line for s in self.steps if isinstance(s, RunCommand)]


PlanBuilder = Callable[[PlanContext], EcosystemPlan]


def _set_bundle_dependencies(
    manifest: PluginManifest, value: bool | list[str]
) -> None:
    manifest.bundle_dependencies = value


def _retarget_scripts(manifest: PluginManifest, runner: str, publish_name: str) -> None:
    manifest.scripts = rewrite_scripts(manifest.scripts, runner)
    manifest.name = publish_name


def _finish_yarn_manifest(manifest: PluginManifest, publish_name: str) -> None:
    add_lock_artifact(manifest)
    manifest.name = publish_name


def _bundle_steps(ctx: PlanContext) -> list[Step]:
    opts = ctx.options
    if opts.bundle_dependencies_all:
        value: bool | list[str] = True
    elif opts.bundle_dependencies:
        value = list(opts.bundle_dependencies)
    else:
        return []
    return [EditManifest(partial(_set_bundle_dependencies, value=value))]


def _cleanup_steps() -> list[Step]:
    return [RemovePath("yarn.lock"), RemovePath("node_modules")]


def _lock_steps(ctx: PlanContext) -> list[Step]:
    if not ctx.options.oclif_lock:
        return []
    return [RunCommand(ctx.generator, ("lock",), "Generating oclif.lock")]


def npm_plan(ctx: PlanContext) -> EcosystemPlan:
    npm = ctx.command(NPM.cli_command)
    steps: list[Step] = [
        *_bundle_steps(ctx),
        *_cleanup_steps(),
        RunCommand(npm, ("install",), "Installing dependencies"),
    ]
    if ctx.options.shrinkwrap:
        steps.append(RunCommand(npm, ("shrinkwrap",), "Generating shrinkwrap"))
    steps.append(
        EditManifest(
            partial(
                _retarget_scripts,
                runner=NPM.script_runner,
                publish_name=ctx.publish_name,
            )
        )
    )
    return EcosystemPlan(NPM, tuple(steps))


def pnpm_plan(ctx: PlanContext) -> EcosystemPlan:
    pnpm = ctx.command(PNPM.cli_command)
    steps: list[Step] = [
        *_bundle_steps(ctx),
        *_cleanup_steps(),
        RunCommand(pnpm, ("install",), "Installing dependencies"),
        EditManifest(
            partial(
                _retarget_scripts,
                runner=PNPM.script_runner,
                publish_name=ctx.publish_name,
            )
        ),
    ]
    return EcosystemPlan(PNPM, tuple(steps))


def yarn_plan(ctx: PlanContext) -> EcosystemPlan:
    finish = EditManifest(partial(_finish_yarn_manifest, publish_name=ctx.publish_name))

    if is_legacy_yarn(ctx.options.yarn_version):
        return EcosystemPlan(YARN, (*_lock_steps(ctx), finish))

    # yarn gets confused when a project-local yarn sets another version,
    # so the global one is used. A semver range can only be selected once
    # a stable release is in place.
    yarn = ctx.command(YARN.cli_command)
    target = ctx.options.yarn_version or DEFAULT_YARN_TARGET
    steps: list[Step] = [
        RunCommand(ctx.command("corepack"), ("enable",), "Enabling corepack"),
        *_cleanup_steps(),
        RunCommand(
            yarn,
            ("set", "version", "stable", "--yarn-path"),
            "Setting yarn version (stable)",
        ),
        RunCommand(
            yarn,
            ("set", "version", target, "--yarn-path"),
            f"Setting yarn version ({target})",
        ),
        WriteFile(YARNRC_FILENAME, linker_config(), "Configuring node-modules linker"),
        RunCommand(yarn, ("install",), "Installing dependencies"),
        *_lock_steps(ctx),
        finish,
    ]
    return EcosystemPlan(YARN, tuple(steps), hint=YARN_HINT)


PLANS: dict[str, PlanBuilder] = {
    NPM.name: npm_plan,
    PNPM.name: pnpm_plan,
    YARN.name: yarn_plan,
}


def build_plan(ctx: PlanContext) -> EcosystemPlan:
    """Build the post-processing plan for the context's ecosystem."""
    return PLANS[ctx.options.ecosystem.name](ctx)


async def run_plan(plan: EcosystemPlan, project: Path, executor: Executor) -> None:
    """Apply every step of `plan` to `project`, stopping at the first failure.

    Nothing is rolled back; re-run with --force to start over.
    """
    try:
        for step in plan.steps:
            logger.info("[%s] %s", project.name, step.label)
            await step.apply(project, executor)
    except SpawnError as e:
        if plan.hint is None:
            raise
        raise EcosystemSetupError(
            str(e),
            suggestions=(
                plan.hint,
                f"'{e.command}' was not found; run `corepack enable` or install it",
            ),
        ) from e
    except (StepFailedError, ManifestError, OSError) as e:
        if plan.hint is None:
            raise
        raise EcosystemSetupError(str(e), suggestions=(plan.hint,)) from e
