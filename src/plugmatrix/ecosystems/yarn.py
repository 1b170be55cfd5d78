"""yarn ecosystem definition and version helpers."""

from __future__ import annotations

from plugmatrix.ecosystems.base import Ecosystem

YARN = Ecosystem(
    name="yarn",
    tag="C",
    cli_command="yarn",
    install_info="https://yarnpkg.com/getting-started/install",
    lockfiles=("yarn.lock",),
    script_runner="yarn",
)

YARN_VERSIONS: tuple[str, ...] = (
    "latest",
    "stable",
    "classic",
    "canary",
    "1.x",
    "2.x",
    "3.x",
    "4.x",
)

LEGACY_YARN_VERSIONS: frozenset[str] = frozenset({"1.x", "classic"})

# Pinned when a modern setup is requested without an explicit version.
DEFAULT_YARN_TARGET = "classic"

YARNRC_FILENAME = ".yarnrc.yml"
NODE_MODULES_LINKER = "nodeLinker: node-modules"


def is_legacy_yarn(version: str | None) -> bool:
    """Return True when `version` selects yarn 1 without corepack."""
    return version in LEGACY_YARN_VERSIONS


def yarn_major(package_manager: str | None) -> int | None:
    """Extract the yarn major version from a `packageManager` field.

    Returns None when the field is missing, names another tool, or has
    no numeric major (e.g. "yarn@canary").
    """
    if not package_manager:
        return None
    tool, _, version = package_manager.partition("@")
    if tool != "yarn":
        return None
    major = version.split(".", 1)[0]
    if not major.isdecimal():
        return None
    return int(major)


def is_modern_yarn(package_manager: str | None) -> bool:
    """Return True when the manifest pins yarn 2 or newer."""
    major = yarn_major(package_manager)
    return major is not None and major >= 2


def linker_config(registry: str | None = None) -> str:
    """Render `.yarnrc.yml` content forcing the node-modules linker.

    With a registry, also point `yarn npm publish` at it.
    """
    lines = [NODE_MODULES_LINKER]
    if registry:
        lines.extend(
            [
                f'npmRegistryServer: "{registry}"',
                "unsafeHttpWhitelist:",
                "  - localhost",
                'npmAuthIdent: "username:password"',
            ]
        )
    return "\n".join(lines) + "\n"
