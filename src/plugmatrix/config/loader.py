"""Configuration file loading and merging."""

import os
from pathlib import Path

import yaml

from plugmatrix.config.schema import DEFAULT_CONFIG, PlugmatrixConfig

CONFIG_FILENAME = "config.yaml"

GENERATOR_ENV = "PLUGMATRIX_GENERATOR"


def get_home_config_path() -> Path:
    """Get path to global config: ~/.plugmatrix/config.yaml."""
    return Path.home() / ".plugmatrix" / CONFIG_FILENAME


def get_local_config_path() -> Path:
    """Get path to local config: ./.plugmatrix/config.yaml."""
    return Path.cwd() / ".plugmatrix" / CONFIG_FILENAME


def home_config_exists() -> bool:
    """Check if the global home config exists."""
    return get_home_config_path().exists()


def local_config_exists() -> bool:
    """Check if the local project config exists."""
    return get_local_config_path().exists()


def load_yaml_config(path: Path) -> dict[str, object] | None:
    """Load a YAML config file, return None if not found or empty."""
    if not path.exists():
        return None
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
            if data is None:
                return None
            if not isinstance(data, dict):
                return None
            result: dict[str, object] = data
            return result
    except yaml.YAMLError:
        return None


def load_config() -> PlugmatrixConfig:
    """Load merged configuration.

    Precedence (lowest to highest):
    1. Built-in defaults
    2. Global config (~/.plugmatrix/config.yaml)
    3. Local config (./.plugmatrix/config.yaml)
    4. PLUGMATRIX_GENERATOR env var (generator only)

    Returns merged PlugmatrixConfig.
    """
    config = DEFAULT_CONFIG

    home_data = load_yaml_config(get_home_config_path())
    if home_data:
        config = config.merge(PlugmatrixConfig.from_dict(home_data))

    local_data = load_yaml_config(get_local_config_path())
    if local_data:
        config = config.merge(PlugmatrixConfig.from_dict(local_data))

    generator = os.environ.get(GENERATOR_ENV)
    if generator:
        config = config.merge(PlugmatrixConfig(generator=generator))

    return config
