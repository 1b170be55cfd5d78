"""Configuration and preflight checks."""

from plugmatrix.config.loader import (
    home_config_exists,
    load_config,
    local_config_exists,
)
from plugmatrix.config.schema import (
    DEFAULT_CONFIG,
    DEFAULT_REGISTRY,
    PlugmatrixConfig,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_REGISTRY",
    "PlugmatrixConfig",
    "home_config_exists",
    "load_config",
    "local_config_exists",
]
