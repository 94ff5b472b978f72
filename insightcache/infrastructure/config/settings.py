"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.insightcache/config.yaml). Cache consumers read their
values through `get_cache_settings`.
"""

import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".insightcache"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
DEFAULT_CACHE_DIR = DEFAULT_CONFIG_DIR / "cache"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "INSIGHTCACHE_"

DEFAULT_EXPIRATION_MINUTES = 30
DEFAULT_MAX_CACHE_SIZE = 100
DEFAULT_CLEANUP_INTERVAL_MINUTES = 60

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


@dataclass
class CacheSettings:
    """Configuration values the cache consumes at construction."""
    default_expiration: timedelta = timedelta(minutes=DEFAULT_EXPIRATION_MINUTES)
    enable_offline_mode: bool = True
    max_cache_size: int = DEFAULT_MAX_CACHE_SIZE
    cleanup_interval: timedelta = timedelta(minutes=DEFAULT_CLEANUP_INTERVAL_MINUTES)
    cache_directory: Path = DEFAULT_CACHE_DIR
    max_disk_items: Optional[int] = None

    def __post_init__(self) -> None:
        self.cache_directory = Path(self.cache_directory).expanduser()
        if self.default_expiration.total_seconds() <= 0:
            raise ValueError("default_expiration must be positive")
        if self.cleanup_interval.total_seconds() <= 0:
            raise ValueError("cleanup_interval must be positive")
        if self.max_cache_size < 0:
            raise ValueError("max_cache_size must not be negative")
        if self.max_disk_items is not None and self.max_disk_items < 0:
            raise ValueError("max_disk_items must not be negative")


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(yaml_config)
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load or parse YAML config {config_file}: {e}")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: ENV VARS take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no .env found).")

    # 3. Environment Variables (Highest priority) are handled in get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded values so the next load_configuration reads files again."""
    global _config, _loaded
    _config = {}
    _loaded = False


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key (e.g. 'cache.max_cache_size').

    Priority:
    1. Test configuration (if in testing mode)
    2. Environment variable (INSIGHTCACHE_CACHE_MAX_CACHE_SIZE or CACHE.MAX_CACHE_SIZE)
    3. YAML config (flat dotted key or nested mappings)
    4. Default value
    """
    if key in _test_config:
        return _test_config[key]

    for env_key in (ENV_PREFIX + key.upper().replace('.', '_'), key.upper()):
        if env_key in os.environ:
            return _coerce_env_value(os.environ[env_key])

    if key in _config:
        return _config[key]
    node: Any = _config
    for part in key.split('.'):
        if not isinstance(node, dict) or part not in node:
            logger.debug(f"Config key '{key}' not found. Returning default: {default}")
            return default
        node = node[part]
    return node


def _coerce_env_value(value: str) -> Any:
    """Converts common string forms from the environment into Python types."""
    lowered = value.lower()
    if lowered == 'true':
        return True
    if lowered == 'false':
        return False
    if lowered in ('', 'none', 'null'):
        return None
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    try:
        cwd = Path.cwd()
        for path in [cwd] + list(cwd.parents):
            env_path = path / ENV_FILE_NAME
            if env_path.is_file():
                return env_path
    except OSError as e:
        logger.warning(f"Error searching for .env file: {e}")
    return None


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the current process."""
    logger.debug(f"Setting config: {key} = {value}")
    _config[key] = value


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")


# --- Convenience Functions ---

def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        if value.lower() in ('true', '1', 'yes', 'on'):
            return True
        if value.lower() in ('false', '0', 'no', 'off'):
            return False
        logger.warning(f"Unexpected boolean value '{value}'. Defaulting to {default}.")
        return default
    return bool(value)


def get_cache_settings() -> CacheSettings:
    """Builds CacheSettings from the loaded configuration.

    Raises:
        ValueError: If a configured value is out of range or not a number.
    """
    max_disk_items = get_config('cache.max_disk_items')
    return CacheSettings(
        default_expiration=timedelta(
            minutes=float(get_config('cache.expiration_minutes', DEFAULT_EXPIRATION_MINUTES))
        ),
        enable_offline_mode=_as_bool(get_config('cache.enable_offline_mode'), True),
        max_cache_size=int(get_config('cache.max_cache_size', DEFAULT_MAX_CACHE_SIZE)),
        cleanup_interval=timedelta(
            minutes=float(get_config('cache.cleanup_interval_minutes', DEFAULT_CLEANUP_INTERVAL_MINUTES))
        ),
        cache_directory=Path(str(get_config('cache.directory', DEFAULT_CACHE_DIR))),
        max_disk_items=int(max_disk_items) if max_disk_items is not None else None,
    )
