"""Base ecosystem definition."""

import shutil
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Ecosystem:
    """Definition of a package-manager toolchain."""

    name: str
    tag: str  # "A", "B", "C"
    cli_command: str
    install_info: str
    lockfiles: tuple[str, ...] = ()  # detection sentinels, in precedence order
    script_runner: str = ""  # prefix used to run a package.json script

    def is_installed(self) -> bool:
        """Check if this ecosystem's CLI command is available in PATH."""
        return shutil.which(self.cli_command) is not None

    def has_lockfile(self, directory: Path) -> bool:
        """Check if any of this ecosystem's lockfiles exists in `directory`."""
        return any((directory / lockfile).exists() for lockfile in self.lockfiles)
