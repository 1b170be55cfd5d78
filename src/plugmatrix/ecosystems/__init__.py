"""Package-manager ecosystem definitions and detection."""

from __future__ import annotations

from pathlib import Path

from plugmatrix.ecosystems.base import Ecosystem
from plugmatrix.ecosystems.npm import NPM
from plugmatrix.ecosystems.pnpm import PNPM
from plugmatrix.ecosystems.yarn import YARN

__all__ = [
    "Ecosystem",
    "ECOSYSTEMS",
    "NPM",
    "PNPM",
    "YARN",
    "DEFAULT_ECOSYSTEM",
    "detect_ecosystem",
    "get_ecosystem_by_name",
]

# Order matters: detection checks lockfiles in this order.
ECOSYSTEMS: tuple[Ecosystem, ...] = (
    NPM,
    PNPM,
    YARN,
)

# Used when a directory holds none of the other ecosystems' lockfiles.
DEFAULT_ECOSYSTEM = YARN


def get_ecosystem_by_name(name: str) -> Ecosystem | None:
    """Find an ecosystem by name, tag or cli_command (case-insensitive)."""
    name_lower = name.lower()
    for ecosystem in ECOSYSTEMS:
        if name_lower in (
            ecosystem.name.lower(),
            ecosystem.tag.lower(),
            ecosystem.cli_command.lower(),
        ):
            return ecosystem
    return None


def detect_ecosystem(directory: Path) -> Ecosystem:
    """Detect which ecosystem a plugin directory uses from its lockfiles."""
    for ecosystem in ECOSYSTEMS:
        if ecosystem is DEFAULT_ECOSYSTEM:
            continue
        if ecosystem.has_lockfile(directory):
            return ecosystem
    return DEFAULT_ECOSYSTEM
