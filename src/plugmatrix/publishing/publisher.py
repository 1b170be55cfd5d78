"""Publish generated plugins to a local registry."""

from __future__ import annotations

import asyncio
import ipaddress
import logging
import shutil
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from plugmatrix.config.schema import DEFAULT_REGISTRY, DEFAULT_REGISTRY_STORAGE
from plugmatrix.ecosystems import YARN, Ecosystem, detect_ecosystem
from plugmatrix.ecosystems.yarn import YARNRC_FILENAME, is_modern_yarn, linker_config
from plugmatrix.executors import ExecutorFactory, SpawnError, get_executor
from plugmatrix.manifest import (
    PluginManifest,
    bump_patch,
    read_manifest,
    update_manifest,
)

logger = logging.getLogger(__name__)


class RegistryError(ValueError):
    """Raised when the registry URL is not a local registry."""


@dataclass
class PublishResult:
    """Names of published and failed plugins, in completion order."""

    published: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def validate_registry(url: str) -> str:
    """Return `url` if its host is loopback, else raise RegistryError."""
    try:
        host = urlsplit(url).hostname
    except ValueError as e:
        raise RegistryError(f"Invalid registry URL '{url}': {e}") from e
    if not host:
        raise RegistryError(f"Registry URL '{url}' has no host")
    if host == "localhost":
        return url
    try:
        loopback = ipaddress.ip_address(host).is_loopback
    except ValueError:
        loopback = False
    if not loopback:
        raise RegistryError(f"Registry must be localhost, got '{host}'")
    return url


def clear_registry_storage(storage: Path) -> bool:
    """Delete the registry's storage directory.

    Returns True if something was removed; a missing directory is fine.
    """
    if not storage.exists():
        return False
    logger.info("Clearing registry storage %s", storage)
    shutil.rmtree(storage)
    return True


def discover_plugins(directory: Path) -> list[Path]:
    """Return every plugin directory directly inside `directory`."""
    return sorted(p for p in directory.iterdir() if p.is_dir())


def _bump_version(manifest: PluginManifest) -> None:
    manifest.version = bump_patch(manifest.version)


def publish_command(
    ecosystem: Ecosystem,
    manifest: PluginManifest,
    registry: str,
    dry_run: bool,
    commands: Mapping[str, str] | None = None,
) -> tuple[str, list[str]]:
    """Return (command, args) publishing a plugin with its own package manager."""
    commands = commands or {}
    command = commands.get(ecosystem.cli_command, ecosystem.cli_command)
    if ecosystem is YARN and is_modern_yarn(manifest.package_manager):
        # `yarn npm publish` takes the registry from .yarnrc.yml only.
        args = ["npm", "publish"]
    else:
        args = ["publish", "--registry", registry]
    if dry_run:
        args.append("--dry-run")
    return command, args


async def publish_plugin(
    plugin: Path,
    registry: str,
    result: PublishResult,
    dry_run: bool = False,
    executor_factory: ExecutorFactory = get_executor,
    commands: Mapping[str, str] | None = None,
) -> bool:
    """Bump the plugin's patch version and publish it.

    Records the outcome in `result` and returns True on success. A failure
    to start the tool or to write the plugin's files counts as a failed
    publish.
    """
    ecosystem = detect_ecosystem(plugin)
    try:
        manifest = update_manifest(plugin, _bump_version)
    except OSError as e:
        return _record_failure(result, plugin.name, e)
    logger.debug("Publishing %s@%s with %s", manifest.name, manifest.version, ecosystem.name)

    command, args = publish_command(ecosystem, manifest, registry, dry_run, commands)
    try:
        if ecosystem is YARN and is_modern_yarn(manifest.package_manager):
            (plugin / YARNRC_FILENAME).write_text(
                linker_config(registry), encoding="utf-8"
            )
        exit_code = await executor_factory(manifest.name).exec(command, args, plugin)
    except (SpawnError, OSError) as e:
        return _record_failure(result, manifest.name, e)

    if exit_code != 0:
        return _record_failure(result, manifest.name)

    result.published.append(manifest.name)
    return True


def _record_failure(
    result: PublishResult, name: str, error: Exception | None = None
) -> bool:
    if error is None:
        logger.warning("Failed to publish %s", name)
    else:
        logger.warning("Failed to publish %s: %s", name, error)
    result.failed.append(name)
    return False


def check_versions(plugins: Sequence[Path]) -> None:
    """Make sure every plugin has a readable manifest with a bumpable version.

    Raises ManifestError or VersionError before anything is published.
    """
    for plugin in plugins:
        bump_patch(read_manifest(plugin).version)


async def publish(
    plugins: Sequence[Path],
    registry: str = DEFAULT_REGISTRY,
    dry_run: bool = False,
    clear_registry_first: bool = False,
    storage: Path | None = None,
    executor_factory: ExecutorFactory = get_executor,
    commands: Mapping[str, str] | None = None,
) -> PublishResult:
    """Publish all plugins concurrently.

    Individual publish failures are collected, never raised. Input errors
    (non-local registry, unreadable manifest, non-numeric patch version)
    are raised before any plugin is touched.
    """
    validate_registry(registry)
    check_versions(plugins)

    if clear_registry_first:
        clear_registry_storage(storage or Path(DEFAULT_REGISTRY_STORAGE).expanduser())

    result = PublishResult()
    await asyncio.gather(
        *(
            publish_plugin(
                plugin,
                registry,
                result,
                dry_run=dry_run,
                executor_factory=executor_factory,
                commands=commands,
            )
            for plugin in plugins
        )
    )
    return result
