"""
Configuration file and environment helpers.

Each controller family reads its own YAML file from the config directory,
and environment variables override file values:
- Config files live in config/ (or $CONFIG_DIR)
- File values are merged over code defaults
- {PREFIX}_{KEY} environment variables override file values
"""

import copy
import os
import logging
from pathlib import Path
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_path = Path(os.getenv('CONFIG_DIR', 'config'))
    if not config_path.is_absolute():
        # Relative to project root (parent of curtains/)
        project_root = Path(__file__).parent.parent.parent
        config_path = project_root / config_path

    return config_path


def load_yaml_config(config_name: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        config_name: Name of the config file (without .yaml extension)

    Returns:
        Dictionary with configuration values, empty dict if the file is
        missing or unreadable
    """
    config_file = get_config_dir() / f"{config_name}.yaml"

    if not config_file.exists():
        logger.debug(f"Config file not found: {config_file}, using defaults")
        return {}

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing config file {config_file}: {e}")
        return {}
    except OSError as e:
        logger.error(f"Error loading config file {config_file}: {e}")
        return {}

    if not isinstance(config, dict):
        logger.error(f"Config file {config_file} must contain a mapping, got {type(config).__name__}")
        return {}

    logger.info(f"Loaded configuration from {config_file}")
    return config


def merge_configs(defaults: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two configuration dictionaries, overrides winning."""
    result = defaults.copy()

    for key, value in overrides.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value

    return result


def apply_env_overrides(config: Dict[str, Any], prefix: str) -> Dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Variables are named {PREFIX}_{KEY}; nested keys use a double
    underscore: CURTAIN_ENGINES__MOCK__TICK_INTERVAL.

    Args:
        config: Configuration dictionary (left untouched)
        prefix: Environment variable prefix (e.g. 'CURTAIN')

    Returns:
        New configuration dictionary with overrides applied
    """
    result = copy.deepcopy(config)
    env_prefix = f"{prefix.upper()}_"

    for env_key, env_value in os.environ.items():
        if not env_key.startswith(env_prefix):
            continue

        parts = env_key[len(env_prefix):].lower().split('__')
        current = result
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[parts[-1]] = _parse_env_value(env_value)

    return result


def _parse_env_value(value: str) -> Any:
    """Parse an environment variable value to the appropriate type."""
    lowered = value.lower()
    if lowered in ('true', 'false'):
        return lowered == 'true'

    if lowered in ('null', 'none', ''):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value
