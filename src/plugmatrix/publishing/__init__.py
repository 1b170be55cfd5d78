"""Publishing generated plugins to a local registry."""

from plugmatrix.publishing.publisher import (
    PublishResult,
    RegistryError,
    clear_registry_storage,
    discover_plugins,
    publish,
    publish_command,
    publish_plugin,
    validate_registry,
)

__all__ = [
    "PublishResult",
    "RegistryError",
    "clear_registry_storage",
    "discover_plugins",
    "publish",
    "publish_command",
    "publish_plugin",
    "validate_registry",
]
