"""Configuration schema for plugmatrix."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

DEFAULT_REGISTRY = "http://localhost:4873/"
DEFAULT_REGISTRY_STORAGE = "~/.local/share/verdaccio/storage"

# Tools whose executable can be overridden under `commands:`.
TOOLS: tuple[str, ...] = ("npm", "pnpm", "yarn", "corepack")


@dataclass
class PlugmatrixConfig:
    """plugmatrix configuration schema.

    None values indicate "not set" and will use defaults or be inherited.
    """

    # Scaffolding
    generator: str | None = None  # executable invoked as `<generator> generate`
    scope: str | None = None  # npm scope of generated plugin names
    output_directory: str | None = None

    # Batch generation
    concurrency: int | None = None

    # Publishing
    registry: str | None = None
    registry_storage: str | None = None

    # Executable overrides, e.g. {"npm": "/opt/node/bin/npm"}
    commands: dict[str, str] = field(default_factory=dict)

    def merge(self, other: PlugmatrixConfig) -> PlugmatrixConfig:
        """Merge another config into this one.

        Values from `other` take precedence when they are not None.
        Returns a new PlugmatrixConfig instance.
        """
        return PlugmatrixConfig(
            generator=other.generator if other.generator is not None else self.generator,
            scope=other.scope if other.scope is not None else self.scope,
            output_directory=(
                other.output_directory
                if other.output_directory is not None
                else self.output_directory
            ),
            concurrency=(
                other.concurrency if other.concurrency is not None else self.concurrency
            ),
            registry=other.registry if other.registry is not None else self.registry,
            registry_storage=(
                other.registry_storage
                if other.registry_storage is not None
                else self.registry_storage
            ),
            commands={**self.commands, **other.commands},
        )

    def command_for(self, tool: str) -> str:
        """Return the executable to run for `tool`."""
        return self.commands.get(tool, tool)

    @property
    def generator_command(self) -> str:
        return self.generator or "oclif"

    @property
    def registry_storage_path(self) -> Path:
        return Path(self.registry_storage or DEFAULT_REGISTRY_STORAGE).expanduser()

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary, excluding None values."""
        result: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "commands":
                if value:
                    result["commands"] = dict(value)
            elif value is not None:
                result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlugmatrixConfig:
        """Create a PlugmatrixConfig from a dictionary.

        Unknown keys are ignored. Type validation is performed.
        """
        concurrency_raw = data.get("concurrency")
        concurrency = int(concurrency_raw) if concurrency_raw is not None else None

        commands_raw = data.get("commands")
        commands: dict[str, str] = {}
        if isinstance(commands_raw, dict):
            commands = {
                str(tool): str(command)
                for tool, command in commands_raw.items()
                if tool in TOOLS and command
            }

        def _str(key: str) -> str | None:
            value = data.get(key)
            return str(value) if value is not None else None

        return cls(
            generator=_str("generator"),
            scope=_str("scope"),
            output_directory=_str("output_directory"),
            concurrency=concurrency,
            registry=_str("registry"),
            registry_storage=_str("registry_storage"),
            commands=commands,
        )


# Default configuration values (used when not specified anywhere)
DEFAULT_CONFIG = PlugmatrixConfig(
    generator="oclif",
    scope="oclif",
    registry=DEFAULT_REGISTRY,
    registry_storage=DEFAULT_REGISTRY_STORAGE,
)
