"""
Configuration loading utilities for the JSON schema builder.

This module loads config.yaml, merges it over the built-in defaults and
falls back to the defaults whenever the file is missing or unreadable.
"""

import yaml
from pathlib import Path
from typing import Dict, Any, Optional
import logging
from copy import deepcopy

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config.yaml")

_config_cache: Optional[Dict[str, Any]] = None


def deep_merge(base_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with update_dict taking precedence.

    Args:
        base_dict: Base dictionary (defaults)
        update_dict: Dictionary to merge in (user config)

    Returns:
        Merged dictionary
    """
    result = deepcopy(base_dict)

    for key, value in update_dict.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = deepcopy(value)

    return result


def get_default_config() -> Dict[str, Any]:
    """
    Get the built-in default configuration.

    Returns:
        Dictionary with default configuration
    """
    return {
        'app': {
            'name': 'JSON Schema Builder',
            'version': '1.0.0',
            'debug': False
        },
        'ui': {
            'page_title': 'JSON Schema Builder'
        },
        'history': {
            'max_entries': 20,
            'action_label': 'Schema modified'
        },
        'storage': {
            'schemas_dir': 'saved_schemas'
        },
        'logging': {
            'level': 'INFO'
        }
    }


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load application configuration.

    The default path is cached after the first read; pass an explicit path to
    bypass the cache.

    Args:
        config_path: Optional path to config file (defaults to config.yaml)

    Returns:
        Complete configuration dictionary
    """
    global _config_cache

    use_cache = config_path is None
    if use_cache and _config_cache is not None:
        return _config_cache

    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    config = _read_config(Path(config_path))
    if use_cache:
        _config_cache = config
    return config


def _read_config(config_path: Path) -> Dict[str, Any]:
    default_config = get_default_config()

    if not config_path.exists():
        logger.warning(f"Configuration file not found: {config_path}")
        logger.info("Using default configuration")
        return default_config

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            user_config = yaml.safe_load(f)

        if user_config is None:
            logger.warning(f"Configuration file is empty: {config_path}")
            return default_config

        if not isinstance(user_config, dict):
            logger.error(f"Configuration file is not a valid dictionary: {config_path}")
            logger.info("Using default configuration")
            return default_config

        config = deep_merge(default_config, user_config)

        logger.info(f"Successfully loaded configuration from {config_path}")
        return config

    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config

    except (IOError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_path}: {e}")
        logger.info("Using default configuration")
        return default_config


def reload_config() -> Dict[str, Any]:
    """Drop the cached configuration and read config.yaml again."""
    global _config_cache
    _config_cache = None
    return load_config()


def get_config_value(section: str, key: str, default: Any = None) -> Any:
    """
    Get a specific configuration value.

    Args:
        section: Configuration section (e.g., 'history', 'ui')
        key: Configuration key within section
        default: Default value if not found

    Returns:
        Configuration value or default
    """
    config = load_config()
    section_values = config.get(section, {})
    if not isinstance(section_values, dict):
        return default
    return section_values.get(key, default)


def validate_config(config: Dict[str, Any]) -> bool:
    """
    Validate configuration structure and value types.

    Args:
        config: Configuration dictionary to validate

    Returns:
        True if configuration is valid, False otherwise
    """
    required_sections = ['app', 'ui', 'history', 'storage', 'logging']

    for section in required_sections:
        if not isinstance(config.get(section), dict):
            logger.warning(f"Missing required configuration section: {section}")
            return False

    app = config['app']
    if 'name' not in app or 'version' not in app:
        logger.warning("Missing required app configuration (name or version)")
        return False

    history = config['history']
    if 'max_entries' in history:
        try:
            max_entries = int(history['max_entries'])
        except (ValueError, TypeError):
            logger.warning("history.max_entries must be a valid integer")
            return False
        if max_entries <= 0:
            logger.warning("history.max_entries must be positive")
            return False

    schemas_dir = config['storage'].get('schemas_dir')
    if not isinstance(schemas_dir, str) or not schemas_dir.strip():
        logger.warning("storage.schemas_dir must be a non-empty string")
        return False

    level = config['logging'].get('level', 'INFO')
    if not isinstance(level, str):
        logger.warning("logging.level must be a string")
        return False

    return True
