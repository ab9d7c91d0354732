"""Provides functions for loading and accessing configuration settings.

Supports loading from .env files, environment variables, and a dedicated
configuration file (~/.keyauth/config.yaml). The values the application needs
are read once into an immutable `AppSettings` built by `build_settings()`,
which the composition root passes to the components that need them.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional

import yaml
from dotenv import load_dotenv

from keyauth.domain.errors import ConfigurationError
from keyauth.domain.models.identity import IdentityConfig

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".keyauth"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
DEFAULT_PREFIX = "!"
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Dotted YAML keys and the environment variables that override them.
ENV_OVERRIDES = {
    "bot.prefix": "KEYAUTH_PREFIX",
    "admin_ids": "ADMIN_IDS",
    "management_role_ids": "MANAGEMENT_ROLE_IDS",
    "firebase.credentials": "FIREBASE_CREDENTIALS",
    "firebase.database_url": "FIREBASE_DATABASE_URL",
    "logging.level": "KEYAUTH_LOG_LEVEL",
    "logging.file": "KEYAUTH_LOG_FILE",
    "logging.format": "KEYAUTH_LOG_FORMAT",
}

_config: Dict[str, Any] = {}
_loaded = False


def load_configuration(config_file: Path = DEFAULT_CONFIG_FILE, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Environment Variables
    2. .env file
    3. YAML configuration file
    4. Default values passed to get_config

    Args:
        config_file: Path to the YAML configuration file.
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}

    # 1. YAML file (lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r') as f:
                yaml_config = yaml.safe_load(f)
            if isinstance(yaml_config, dict):
                _config.update(_flatten(yaml_config))
                logger.info(f"Loaded configuration from YAML: {config_file}")
            elif yaml_config is not None:
                logger.warning(f"YAML config file {config_file} did not contain a dictionary.")
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. .env file; override=False so real environment variables win
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("Skipping .env file loading (no file found).")

    # 3. Environment variables are read in get_config
    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded values so the next load_configuration reads again."""
    global _config, _loaded
    _config = {}
    _loaded = False


def _flatten(data: Dict[str, Any], parent: str = "") -> Dict[str, Any]:
    """Flattens nested YAML mappings into dotted keys ('firebase.database_url')."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{parent}.{key}" if parent else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, dotted))
        else:
            flat[dotted] = value
    return flat


def get_config(key: str, default: Any = None) -> Any:
    """Get a configuration value by dotted key.

    Priority:
    1. Environment variable (see ENV_OVERRIDES)
    2. YAML config
    3. Default value
    """
    env_key = ENV_OVERRIDES.get(key, key.upper().replace('.', '_'))
    if env_key in os.environ:
        return os.environ[env_key]
    if key in _config:
        return _config[key]
    logger.debug(f"Config key '{key}' not found in environment or loaded config. Returning default: {default}")
    return default


def get_id_set(key: str) -> FrozenSet[str]:
    """Reads a set of identities given either as a YAML list or a comma-separated string."""
    value = get_config(key)
    if value is None:
        return frozenset()
    if isinstance(value, (list, tuple, set)):
        items = value
    else:
        items = str(value).split(",")
    return frozenset(str(item).strip() for item in items if str(item).strip())


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


@dataclass(frozen=True)
class AppSettings:
    """Settings read once at startup."""
    prefix: str
    identity: IdentityConfig
    firebase_credentials: Optional[str]
    firebase_database_url: Optional[str]
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = DEFAULT_LOG_FORMAT


def build_settings(config_file: Path = DEFAULT_CONFIG_FILE) -> AppSettings:
    """Builds AppSettings from the loaded configuration."""
    load_configuration(config_file)
    identity = IdentityConfig.from_iterables(get_id_set("admin_ids"), get_id_set("management_role_ids"))
    if not identity.admin_ids:
        logger.warning("No admin ids configured; admin commands are unavailable.")
    return AppSettings(
        prefix=str(get_config("bot.prefix", DEFAULT_PREFIX)),
        identity=identity,
        firebase_credentials=get_config("firebase.credentials"),
        firebase_database_url=get_config("firebase.database_url"),
        log_level=str(get_config("logging.level", "INFO")).upper(),
        log_file=get_config("logging.file"),
        log_format=str(get_config("logging.format", DEFAULT_LOG_FORMAT)),
    )
