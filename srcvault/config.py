#!/usr/bin/env python3

import os
import json
import tomllib
from pathlib import Path

import logging
import sys

import yaml

from .exit_codes import ConfigError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr) # Default to stderr
    ]
)
logger = logging.getLogger("srcvault")

CONFIG_FILENAMES = ['config.json', 'config.toml', 'config.yaml', 'config.yml']


def get_config_path():
    """Get the path to the configuration file.

    Checks in order:
    1. SRCVAULT_CONFIG environment variable
    2. ~/.srcvault/ directory
    """
    if 'SRCVAULT_CONFIG' in os.environ:
        path = Path(os.environ['SRCVAULT_CONFIG'])
        if path.exists():
            return path

    srcvault_dir = Path.home() / '.srcvault'
    for filename in CONFIG_FILENAMES:
        path = srcvault_dir / filename
        if path.exists() and path.stat().st_size > 10:  # Not empty/trivial
            return path

    # If no file exists, return default path for saving
    return srcvault_dir / 'config.json'


def load_config(config_path=None):
    """Load configuration from file (the discovered one unless a path is given).

    A file named explicitly must parse; a broken discovered file is logged
    and ignored.
    """
    explicit = config_path is not None
    config_path = Path(config_path) if config_path else get_config_path()

    config = get_default_config()

    if config_path.exists():
        try:
            if config_path.suffix.lower() in ['.toml']:
                with open(config_path, 'rb') as f:
                    file_config = tomllib.load(f)
            elif config_path.suffix.lower() in ['.yaml', '.yml']:
                with open(config_path, 'r') as f:
                    file_config = yaml.safe_load(f) or {}
            else:
                with open(config_path, 'r') as f:
                    file_config = json.load(f)

            config = merge_configs(config, file_config)
        except (OSError, ValueError, yaml.YAMLError) as e:
            if explicit:
                raise ConfigError(f"Error loading config from {config_path}: {e}") from e
            logger.error(f"Error loading config from {config_path}: {e}")

    config = apply_env_overrides(config)

    return config


def save_config(config, config_path=None):
    """Save configuration to file.

    TOML is read-only here; a .toml target is written as JSON next to it.
    """
    config_path = Path(config_path) if config_path else get_config_path()

    config_path.parent.mkdir(parents=True, exist_ok=True)

    if config_path.suffix.lower() in ['.yaml', '.yml']:
        with open(config_path, 'w') as f:
            yaml.safe_dump(config, f, default_flow_style=False)
    else:
        if config_path.suffix.lower() == '.toml':
            logger.warning("Writing TOML is not supported. Saving as JSON instead.")
            config_path = config_path.with_suffix('.json')
        with open(config_path, 'w') as f:
            json.dump(config, f, indent=2)

    logger.info(f"Configuration saved to {config_path}")
    return config_path


def get_default_config():
    """Get default configuration."""
    return {
        "catalog": {
            "base_url": "https://opensource.apple.com/",
            "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:95.0) Gecko/20100101 Firefox/95.0",
            "timeout_seconds": 120
        },
        "git": {
            "branch": "main",
            "bare": True,
            "author_name": "Apple Open Source",
            "author_email": "opensource@apple.com",
            "timestamp": 1609459200,
            "timezone": "+0000"
        },
        "import": {
            "max_concurrent_fetches": 8
        },
        "logging": {
            "level": "INFO"
        }
    }


def configure_logging(config=None, level=None):
    """Apply the configured log level to the srcvault logger tree."""
    if level is None:
        config = config or load_config()
        level = config.get('logging', {}).get('level', 'INFO')
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logger.setLevel(level)


def merge_configs(base_config, override_config):
    """
    Recursively merge two configuration dictionaries.

    Args:
        base_config (dict): Base configuration
        override_config (dict): Configuration to merge/override with

    Returns:
        dict: Merged configuration
    """
    merged = base_config.copy()

    for key, value in override_config.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = value

    return merged


def _coerce_env_value(value):
    lowered = value.lower()
    if lowered in ('true', 'yes', 'on'):
        return True
    if lowered in ('false', 'no', 'off'):
        return False
    if value.isdigit():
        return int(value)
    return value


def _set_by_key_parts(section, parts, value):
    """Set ``value`` at the key path spelled by ``parts``.

    Config keys may themselves contain underscores (``timeout_seconds``),
    so at each level the longest key matching the next parts wins.
    Returns False when the parts don't name an existing key.
    """
    candidates = [key for key in section if parts[:len(key.split('_'))] == key.split('_')]
    if not candidates:
        return False

    key = max(candidates, key=lambda k: len(k.split('_')))
    rest = parts[len(key.split('_')):]
    if not rest:
        section[key] = value
        return True
    if isinstance(section[key], dict):
        return _set_by_key_parts(section[key], rest, value)
    return False


def apply_env_overrides(config):
    """
    Apply environment variable overrides to configuration.

    Variables are named SRCVAULT_<SECTION>_<KEY>, for example
    SRCVAULT_CATALOG_TIMEOUT_SECONDS=30 or SRCVAULT_GIT_BARE=false.
    Variables that name no existing key are ignored.
    """
    env_prefix = "SRCVAULT_"

    for env_key, value in os.environ.items():
        if not env_key.startswith(env_prefix) or env_key == "SRCVAULT_CONFIG":
            continue

        parts = env_key[len(env_prefix):].lower().split('_')
        if not _set_by_key_parts(config, parts, _coerce_env_value(value)):
            logger.debug(f"ignoring {env_key}: no matching configuration key")

    return config
