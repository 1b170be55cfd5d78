"""Preflight checks to validate environment."""

import shutil

from plugmatrix.config.schema import PlugmatrixConfig
from plugmatrix.console import console
from plugmatrix.ecosystems import ECOSYSTEMS


def check_generator(config: PlugmatrixConfig) -> bool:
    """Check that the scaffolding generator is available."""
    generator = config.generator_command
    if shutil.which(generator):
        console.print(f"[green]✓[/green] Generator: [cyan]{generator}[/cyan]")
        return True
    console.print(f"[red]✗[/red] Generator [cyan]{generator}[/cyan] not found in PATH")
    return False


def check_ecosystems(config: PlugmatrixConfig) -> bool:
    """Check for installed package managers. At least one is required."""
    console.print("\n[bold]Package managers:[/bold]")

    available = 0
    for ecosystem in ECOSYSTEMS:
        command = config.command_for(ecosystem.cli_command)
        if shutil.which(command):
            available += 1
            console.print(f"  [green]✓[/green] {ecosystem.name} ([cyan]{command}[/cyan])")
        else:
            console.print(
                f"  [dim]✗[/dim] {ecosystem.name} - [dim]{ecosystem.install_info}[/dim]"
            )

    if shutil.which(config.command_for("corepack")):
        console.print("  [green]✓[/green] corepack")
    else:
        console.print("  [yellow]⚠[/yellow] corepack not found (needed for yarn 2+)")

    if not available:
        console.print("\n[red]✗[/red] No package managers detected.")
        return False
    return True


CHECKS = [
    check_generator,
    check_ecosystems,
]


def run_all_checks(config: PlugmatrixConfig) -> bool:
    """Run all preflight checks."""
    console.print("[bold]Running preflight checks...[/bold]\n")

    results = [check(config) for check in CHECKS]
    all_passed = all(results)

    if all_passed:
        console.print("\n[bold green]All preflight checks passed![/bold green]")
    else:
        console.print("\n[bold red]Some preflight checks failed.[/bold red]")

    return all_passed
