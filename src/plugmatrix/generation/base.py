"""Generation task definition."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from plugmatrix.ecosystems import Ecosystem, get_ecosystem_by_name
from plugmatrix.ecosystems.yarn import YARN_VERSIONS

NAME_PREFIX = "test-plugin"

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class TaskValidationError(ValueError):
    """Raised when a combination of generation options is not allowed."""


class PluginExistsError(Exception):
    """Raised when the target plugin directory exists and force is off."""

    def __init__(self, name: str, target: Path) -> None:
        self.name = name
        self.target = target
        super().__init__(f"Plugin {name} already exists. Use --force to overwrite.")


def _sanitize(value: str) -> str:
    """Make a value usable inside a plugin directory name.

    When characters had to be replaced, a short digest of the original value
    is appended so that distinct values never share a token.
    """
    safe = _UNSAFE_NAME_CHARS.sub("-", value).strip("-")
    if safe == value:
        return value
    digest = hashlib.sha256(value.encode()).hexdigest()[:8]
    return f"{safe}-{digest}" if safe else digest


@dataclass(frozen=True)
class GenerationOptions:
    """The options that shape one generated plugin."""

    package_manager: str
    yarn_version: str | None = None
    bundle_dependencies_all: bool = False
    bundle_dependencies: tuple[str, ...] = ()
    shrinkwrap: bool = False
    oclif_lock: bool = False

    @property
    def ecosystem(self) -> Ecosystem:
        ecosystem = get_ecosystem_by_name(self.package_manager)
        if ecosystem is None:
            raise TaskValidationError(f"Unknown package manager: {self.package_manager}")
        return ecosystem

    def validate(self) -> None:
        """Raise TaskValidationError for option combinations that make no sense."""
        ecosystem = self.ecosystem
        pm = ecosystem.name

        if self.yarn_version is not None and self.yarn_version not in YARN_VERSIONS:
            raise TaskValidationError(f"Unknown yarn version: {self.yarn_version}")
        if self.bundle_dependencies_all and self.bundle_dependencies:
            raise TaskValidationError(
                "--bundle-dependencies-all cannot be combined with --bundle-dependency"
            )
        if pm == "yarn" and (self.bundle_dependencies_all or self.bundle_dependencies):
            raise TaskValidationError("Bundled dependencies are not supported for yarn")
        if self.shrinkwrap and pm != "npm":
            raise TaskValidationError("--shrinkwrap can only be used with npm")
        if self.yarn_version is not None and pm != "yarn":
            raise TaskValidationError("--yarn-version can only be used with yarn")
        if self.oclif_lock and pm != "yarn":
            raise TaskValidationError("--oclif-lock can only be used with yarn")

    def name_tokens(self) -> list[str]:
        """Return one token per active option, in a fixed order."""
        tokens: list[str] = []
        if self.yarn_version:
            tokens.append(self.yarn_version.replace(".", ""))
        if self.bundle_dependencies_all:
            tokens.append("bundle-deps-all")
        tokens.extend(f"bundle-deps-{_sanitize(dep)}" for dep in self.bundle_dependencies)
        if self.shrinkwrap:
            tokens.append("shrinkwrap")
        if self.oclif_lock:
            tokens.append("oclif-lock")
        return tokens


def derive_name(options: GenerationOptions) -> str:
    """Compute the plugin name from the package manager and active options.

    >>> derive_name(GenerationOptions("yarn", yarn_version="1.x"))
    'test-plugin-yarn_1x'
    """
    return "_".join([f"{NAME_PREFIX}-{options.ecosystem.name}", *options.name_tokens()])


@dataclass(frozen=True)
class GenerationTask:
    """A single plugin to generate into `directory`/`name`."""

    name: str
    options: GenerationOptions
    directory: Path
    force: bool = False

    @classmethod
    def create(
        cls,
        options: GenerationOptions,
        directory: Path,
        name: str | None = None,
        force: bool = False,
    ) -> GenerationTask:
        """Validate options and build a task, deriving the name unless given."""
        options.validate()
        if name is not None and not name.strip():
            raise TaskValidationError("Plugin name cannot be empty")
        return cls(
            name=name or derive_name(options),
            options=options,
            directory=directory,
            force=force,
        )

    @property
    def ecosystem(self) -> Ecosystem:
        return self.options.ecosystem

    @property
    def target(self) -> Path:
        return self.directory / self.name

    def describe(self) -> dict[str, Any]:
        """Summarize the task for display and logging."""
        opts = self.options
        package_manager = opts.package_manager
        if opts.yarn_version:
            package_manager = f"{package_manager} {opts.yarn_version}"
        summary: dict[str, Any] = {
            "name": self.name,
            "package manager": package_manager,
            "location": str(self.target),
        }
        if opts.bundle_dependencies_all:
            summary["bundleDependencies"] = True
        if opts.bundle_dependencies:
            summary["bundleDependencies"] = list(opts.bundle_dependencies)
        summary["shrinkwrap"] = opts.shrinkwrap
        summary["oclif-lock"] = opts.oclif_lock
        return summary
