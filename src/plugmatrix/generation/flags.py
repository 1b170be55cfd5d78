"""Command-line flags shared by `generate` and the matrix expander."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, TypeVar

import click

from plugmatrix.ecosystems import ECOSYSTEMS
from plugmatrix.ecosystems.yarn import YARN_VERSIONS
from plugmatrix.generation.base import (
    GenerationOptions,
    GenerationTask,
    TaskValidationError,
)

F = TypeVar("F", bound=Callable[..., Any])

PACKAGE_MANAGERS: tuple[str, ...] = tuple(e.name for e in ECOSYSTEMS)


def generate_options(f: F) -> F:
    """Attach the plugin generation options to a click command."""
    options = [
        click.option(
            "--package-manager",
            "-m",
            type=click.Choice(PACKAGE_MANAGERS),
            required=True,
            help="Package manager to use for plugin.",
        ),
        click.option(
            "--yarn-version",
            type=click.Choice(YARN_VERSIONS),
            help="Version of yarn to use for yarn plugins.",
        ),
        click.option(
            "--bundle-dependencies-all",
            is_flag=True,
            help="Set bundleDependencies:true in package.json.",
        ),
        click.option(
            "--bundle-dependency",
            multiple=True,
            help="Add package to bundleDependencies in package.json.",
        ),
        click.option(
            "--shrinkwrap",
            is_flag=True,
            help="Generate shrinkwrap for npm plugin.",
        ),
        click.option(
            "--oclif-lock",
            is_flag=True,
            help="Generate oclif.lock for yarn plugins.",
        ),
        click.option(
            "--directory",
            "-d",
            type=click.Path(file_okay=False, path_type=Path),
            help="Directory to create the plugin in (default: current directory).",
        ),
        click.option(
            "--force",
            "-f",
            is_flag=True,
            help="Overwrite existing plugin.",
        ),
        click.option(
            "--name",
            "-n",
            help="Override the computed name of the plugin.",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def task_from_params(
    params: dict[str, Any], default_directory: Path | None = None
) -> GenerationTask:
    """Build a validated GenerationTask from parsed generate options."""
    options = GenerationOptions(
        package_manager=params["package_manager"],
        yarn_version=params.get("yarn_version"),
        bundle_dependencies_all=bool(params.get("bundle_dependencies_all")),
        bundle_dependencies=tuple(params.get("bundle_dependency") or ()),
        shrinkwrap=bool(params.get("shrinkwrap")),
        oclif_lock=bool(params.get("oclif_lock")),
    )
    directory = params.get("directory") or default_directory or Path.cwd()
    return GenerationTask.create(
        options,
        directory=Path(directory),
        name=params.get("name"),
        force=bool(params.get("force")),
    )


@click.command("generate", add_help_option=False)
@generate_options
def _generate_parser(**_params: Any) -> None:
    """Parser-only twin of the `generate` command."""


def parse_generate_flags(
    argv: Sequence[str], default_directory: Path | None = None
) -> GenerationTask:
    """Parse generate-style flags (e.g. from a matrix row) into a task.

    Raises TaskValidationError for unknown flags, bad values and
    disallowed combinations.
    """
    try:
        ctx = _generate_parser.make_context("generate", list(argv))
    except click.ClickException as e:
        raise TaskValidationError(e.format_message()) from e
    return task_from_params(ctx.params, default_directory)
