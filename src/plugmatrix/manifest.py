"""Plugin manifest (package.json) model and rewrites."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

MANIFEST_FILENAME = "package.json"
LOCK_ARTIFACT = "oclif.lock"
LOCK_SCRIPT = "oclif lock"

# JSON key -> attribute name for the fields plugmatrix reads or rewrites.
_KNOWN_KEYS: dict[str, str] = {
    "name": "name",
    "version": "version",
    "bundleDependencies": "bundle_dependencies",
    "scripts": "scripts",
    "files": "files",
    "packageManager": "package_manager",
}

# `yarn <script>` or `yarn run <script>`, but not `yarn.lock` or `@yarnpkg/...`.
_YARN_INVOCATION = re.compile(r"(?<![\w./@-])yarn(?:\s+run)?(?![\w.-])")


class ManifestError(Exception):
    """Raised when a package.json is missing or cannot be parsed."""


class VersionError(ValueError):
    """Raised when a version string cannot be bumped."""


@dataclass
class PluginManifest:
    """The fields of a generated plugin's package.json.

    Keys plugmatrix does not know about are kept in `extra` and written back
    unchanged, in their original position.
    """

    name: str
    version: str = "0.0.0"
    bundle_dependencies: bool | list[str] | None = None
    scripts: dict[str, str] = field(default_factory=dict)
    files: list[str] | None = None
    package_manager: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    key_order: list[str] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PluginManifest:
        """Create a manifest from parsed package.json data."""
        name = data.get("name")
        if not isinstance(name, str):
            raise ManifestError("package.json has no string 'name' field")

        scripts_raw = data.get("scripts") or {}
        if not isinstance(scripts_raw, dict):
            raise ManifestError("package.json 'scripts' must be an object")

        files_raw = data.get("files")
        files = [str(f) for f in files_raw] if isinstance(files_raw, list) else None

        bundle_raw = data.get("bundleDependencies")
        bundle: bool | list[str] | None
        if isinstance(bundle_raw, list):
            bundle = [str(dep) for dep in bundle_raw]
        elif isinstance(bundle_raw, bool):
            bundle = bundle_raw
        else:
            bundle = None

        package_manager = data.get("packageManager")

        return cls(
            name=name,
            version=str(data.get("version", "0.0.0")),
            bundle_dependencies=bundle,
            scripts={str(k): str(v) for k, v in scripts_raw.items()},
            files=files,
            package_manager=str(package_manager) if package_manager else None,
            extra={k: v for k, v in data.items() if k not in _KNOWN_KEYS},
            key_order=list(data.keys()),
        )

    def _known_value(self, key: str) -> Any:
        value = getattr(self, _KNOWN_KEYS[key])
        if key == "scripts" and not value and key not in self.key_order:
            return None
        return value

    def to_dict(self) -> dict[str, Any]:
        """Convert to package.json data, keeping the original key order.

        Known fields set to None are omitted; new keys go at the end.
        """
        result: dict[str, Any] = {}
        for key in [*self.key_order, *_KNOWN_KEYS, *self.extra]:
            if key in result:
                continue
            if key in _KNOWN_KEYS:
                value = self._known_value(key)
                if value is not None:
                    result[key] = value
            elif key in self.extra:
                result[key] = self.extra[key]
        return result


def read_manifest(directory: Path) -> PluginManifest:
    """Read `directory`/package.json."""
    path = directory / MANIFEST_FILENAME
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ManifestError(f"No {MANIFEST_FILENAME} in {directory}") from None
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ManifestError(f"{path} does not contain a JSON object")
    return PluginManifest.from_dict(data)


def write_manifest(directory: Path, manifest: PluginManifest) -> None:
    """Write `manifest` to `directory`/package.json with two-space indent."""
    path = directory / MANIFEST_FILENAME
    path.write_text(json.dumps(manifest.to_dict(), indent=2) + "\n", encoding="utf-8")


def update_manifest(
    directory: Path, edit: Callable[[PluginManifest], None]
) -> PluginManifest:
    """Read the manifest from disk, apply `edit`, and write it back.

    Returns the written manifest.
    """
    manifest = read_manifest(directory)
    edit(manifest)
    write_manifest(directory, manifest)
    return manifest


def scoped_name(name: str, scope: str) -> str:
    """Return the publish name, e.g. `@oclif/test-plugin-npm`."""
    return f"@{scope}/{name.replace('_', '-')}"


def rewrite_scripts(scripts: dict[str, str], runner: str) -> dict[str, str]:
    """Replace every yarn invocation in `scripts` with `runner`."""
    return {
        name: _YARN_INVOCATION.sub(runner, command) for name, command in scripts.items()
    }


def add_lock_artifact(manifest: PluginManifest) -> None:
    """Ship oclif.lock with the package and regenerate it before packing."""
    files = list(manifest.files or [])
    if LOCK_ARTIFACT not in files:
        files.append(LOCK_ARTIFACT)
    manifest.files = files

    prepack = manifest.scripts.get("prepack")
    if not prepack:
        manifest.scripts["prepack"] = LOCK_SCRIPT
    elif LOCK_SCRIPT not in prepack:
        manifest.scripts["prepack"] = f"{prepack} && {LOCK_SCRIPT}"


def bump_patch(version: str) -> str:
    """Increment the patch component of a `major.minor.patch` version.

    >>> bump_patch("0.0.9")
    '0.0.10'
    """
    parts = version.split(".")
    if len(parts) != 3 or not re.fullmatch(r"[0-9]+", parts[2]):
        raise VersionError(f"Cannot bump patch version of '{version}'")
    major, minor, patch = parts
    return f"{major}.{minor}.{int(patch) + 1}"
