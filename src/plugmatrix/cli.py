"""Command-line interface for plugmatrix."""

import asyncio
import logging
from pathlib import Path
from typing import Any

import click
import yaml
from rich.table import Table

from plugmatrix import __version__
from plugmatrix.config.loader import (
    get_home_config_path,
    get_local_config_path,
    home_config_exists,
    load_config,
    local_config_exists,
)
from plugmatrix.config.preflight import run_all_checks
from plugmatrix.config.schema import DEFAULT_REGISTRY
from plugmatrix.console import console, setup_logging
from plugmatrix.executors import SpawnError
from plugmatrix.generation import (
    BatchOutcome,
    EcosystemSetupError,
    GenerationTask,
    MatrixError,
    PluginExistsError,
    StepFailedError,
    TaskValidationError,
    generate_options,
    generate_plugin,
    load_matrix,
    run_matrix,
)
from plugmatrix.generation.flags import task_from_params
from plugmatrix.manifest import ManifestError, VersionError
from plugmatrix.publishing import (
    PublishResult,
    RegistryError,
    discover_plugins,
    publish as publish_plugins,
    validate_registry,
)


def version_callback(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    """Print version and exit."""
    if not value or ctx.resilient_parsing:
        return
    console.print(f"plugmatrix [bold cyan]{__version__}[/bold cyan]")
    ctx.exit()


@click.group(invoke_without_command=True)
@click.option(
    "--version",
    is_flag=True,
    callback=version_callback,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.option(
    "--debug",
    is_flag=True,
    envvar="PLUGMATRIX_DEBUG",
    help="Show debug logs, including the output of every subprocess.",
)
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """plugmatrix - generate and publish package-manager test plugins."""
    setup_logging(logging.DEBUG if debug else logging.WARNING)

    if ctx.invoked_subcommand is None:
        console.print("[bold]plugmatrix[/bold] - test plugins for npm, pnpm and yarn")
        console.print("\nRun [cyan]plugmatrix --help[/cyan] for available commands.")


def _print_task(task: GenerationTask) -> None:
    console.print("[bold]Plugin Configuration[/bold]")
    for key, value in task.describe().items():
        console.print(f"[dim]{key}[/dim] {value}")


@main.command()
@generate_options
def generate(**params: Any) -> None:
    """Generate a test plugin that uses a specific package manager.

    \b
    Examples:
      plugmatrix generate --package-manager npm --shrinkwrap
      plugmatrix generate --package-manager pnpm --bundle-dependency @oclif/core
      plugmatrix generate --package-manager yarn --yarn-version 4.x --oclif-lock
    """
    config = load_config()
    default_directory = Path(config.output_directory) if config.output_directory else None
    try:
        task = task_from_params(params, default_directory)
    except TaskValidationError as e:
        raise click.UsageError(str(e)) from None

    _print_task(task)

    try:
        asyncio.run(generate_plugin(task, config))
    except PluginExistsError as e:
        console.print(f"[red]{e}[/red]")
        raise SystemExit(1) from None
    except EcosystemSetupError as e:
        console.print(f"[red]Error: {e}[/red]")
        for suggestion in e.suggestions:
            console.print(f"[yellow]Try this:[/yellow] {suggestion}")
        raise SystemExit(1) from None
    except (SpawnError, StepFailedError, ManifestError) as e:
        console.print(f"[red]Error: {e}[/red]")
        console.print(f"[dim]Re-run with --force to overwrite {task.target}[/dim]")
        raise SystemExit(1) from None

    console.print("[bold green]Success![/bold green]")


def _print_batch(outcome: BatchOutcome) -> None:
    table = Table(title="Generated Plugins")
    table.add_column("Plugin", style="cyan")
    table.add_column("Group", justify="right")
    table.add_column("Status")
    table.add_column("Error", style="dim")
    for task in outcome.outcomes:
        status = "[green]ok[/green]" if task.success else "[red]failed[/red]"
        table.add_row(task.name, str(task.group + 1), status, str(task.error or ""))
    console.print(table)


@main.command("generate-matrix")
@click.option(
    "--matrix",
    "-m",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default="matrix.json",
    show_default=True,
    help="JSON or YAML file containing a matrix of options.",
)
@click.option(
    "--output-directory",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory to create the plugins in (default: current directory).",
)
@click.option(
    "--concurrency",
    "-c",
    type=click.IntRange(min=1),
    help="Generate at most this many plugins at once (default: all).",
)
def generate_matrix(
    matrix: Path, output_directory: Path | None, concurrency: int | None
) -> None:
    """Generate plugins based on a matrix of options."""
    config = load_config()
    if output_directory is None:
        output_directory = Path(config.output_directory or Path.cwd())
    if concurrency is None:
        concurrency = config.concurrency

    try:
        rows = load_matrix(matrix)
        outcome = asyncio.run(
            run_matrix(rows, output_directory, concurrency=concurrency, config=config)
        )
    except MatrixError as e:
        console.print(f"[red]Invalid matrix: {e}[/red]")
        raise SystemExit(1) from None

    _print_batch(outcome)
    if not outcome.ok:
        console.print(
            f"[red]{len(outcome.failed)} of {len(outcome.outcomes)} plugins failed[/red]"
        )
        raise SystemExit(1)
    console.print(f"[green]Generated {len(outcome.outcomes)} plugins[/green]")


def _print_publish(result: PublishResult) -> None:
    console.rule("Published")
    for name in result.published:
        console.print(name)
    if result.failed:
        console.rule("Failed", style="red")
        for name in result.failed:
            console.print(f"[red]{name}[/red]")


@main.command()
@click.option(
    "--directory",
    "-d",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory of plugins to publish.",
)
@click.option(
    "--plugin-directory",
    "-p",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Plugin directory to publish from.",
)
@click.option(
    "--registry",
    "-r",
    envvar="PLUGMATRIX_REGISTRY",
    help="Local (e.g. Verdaccio) registry to publish to.",
)
@click.option("--dry-run", is_flag=True, help="Do not publish to registry.")
@click.option(
    "--clear-registry/--no-clear-registry",
    default=True,
    help="Clear registry storage before publishing (default: clear).",
)
def publish(
    directory: Path | None,
    plugin_directory: Path | None,
    registry: str | None,
    dry_run: bool,
    clear_registry: bool,
) -> None:
    """Publish generated plugins to a local npm registry."""
    if (directory is None) == (plugin_directory is None):
        raise click.UsageError(
            "Exactly one of --directory or --plugin-directory is required."
        )

    config = load_config()
    registry = registry or config.registry or DEFAULT_REGISTRY
    try:
        validate_registry(registry)
    except RegistryError as e:
        raise click.BadParameter(str(e), param_hint="--registry") from None

    plugins = discover_plugins(directory) if directory else [plugin_directory]

    console.rule("Plugins to Publish")
    for plugin in plugins:
        console.print(str(plugin))

    try:
        result = asyncio.run(
            publish_plugins(
                plugins,
                registry=registry,
                dry_run=dry_run,
                clear_registry_first=clear_registry,
                storage=config.registry_storage_path,
                commands=config.commands,
            )
        )
    except (ManifestError, VersionError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise SystemExit(1) from None

    _print_publish(result)
    if result.failed:
        raise SystemExit(1)


@main.command()
def preflight() -> None:
    """Validate environment is ready (generator and package managers)."""
    if not run_all_checks(load_config()):
        raise SystemExit(1)


@main.command("config")
def show_config() -> None:
    """Display the current effective configuration."""
    config = load_config()
    console.print("\n[bold]Current Effective Configuration:[/bold]")
    console.print(f"  [dim]Global: {get_home_config_path()}[/dim]")
    console.print(f"  [dim]Local: {get_local_config_path()}[/dim]")
    console.print()
    console.print(
        yaml.safe_dump(config.to_dict(), sort_keys=False).rstrip(), markup=False
    )
    console.print()
    for label, exists in (
        ("Global config", home_config_exists()),
        ("Local config", local_config_exists()),
    ):
        if exists:
            console.print(f"  [green]{label}: exists[/green]")
        else:
            console.print(f"  [dim]{label}: not found[/dim]")
