"""Provides functions for loading and accessing configuration settings.

Supports loading from a YAML configuration file (~/.issuerelay/config.yaml),
.env files and environment variables, and turns the raw values into the
validated RetryPolicyConfig / RateLimitConfig pair the submission core needs.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

from issuerelay.core.exceptions import ConfigurationError
from issuerelay.domain.models.config import (
    DEFAULT_BACKOFF_MULTIPLIER, DEFAULT_BASE_DELAY, DEFAULT_MAX_DELAY, DEFAULT_MAX_REQUESTS,
    DEFAULT_MAX_RETRIES, DEFAULT_WINDOW_SECONDS, RateLimitConfig, RetryPolicyConfig,
)

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_DIR = Path.home() / ".issuerelay"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "ISSUERELAY_"

DEFAULT_ENDPOINT = "https://mcp.linear.app/sse"
DEFAULT_TIMEOUT = 10.0
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

DEFAULTS: Dict[str, Any] = {
    "transport": {
        "endpoint": DEFAULT_ENDPOINT,
        "timeout": DEFAULT_TIMEOUT,
    },
    "retry": {
        "max_retries": DEFAULT_MAX_RETRIES,
        "base_delay": DEFAULT_BASE_DELAY,
        "max_delay": DEFAULT_MAX_DELAY,
        "backoff_multiplier": DEFAULT_BACKOFF_MULTIPLIER,
    },
    "rate_limit": {
        "max_requests": DEFAULT_MAX_REQUESTS,
        "window_seconds": DEFAULT_WINDOW_SECONDS,
    },
    "logging": {
        "level": "INFO",
        "format": DEFAULT_LOG_FORMAT,
        "file": None,
    },
}

# --- Global Configuration Store (Simple Approach) ---
_config: Dict[str, Any] = {}    # Flattened YAML values
_runtime_config: Dict[str, Any] = {}  # Values set via set_config (e.g. CLI flags)
_test_config: Dict[str, Any] = {}  # For testing purposes
_loaded = False


def _flatten(data: Dict[str, Any], prefix: str = "") -> Dict[str, Any]:
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, prefix=f"{dotted}."))
        else:
            flat[dotted] = value
    return flat


def _env_name(key: str) -> str:
    return ENV_PREFIX + key.upper().replace(".", "_")


def _coerce(value: str) -> Any:
    """Converts common scalar spellings found in environment variables."""
    if value.lower() == 'true':
        return True
    if value.lower() == 'false':
        return False
    try:
        if '.' in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def load_configuration(config_file: Optional[Path] = None, env_file: Optional[Path] = None) -> None:
    """Loads configuration from environment, .env file, and YAML file.

    Priority order (highest to lowest):
    1. Test overrides and values set with set_config
    2. Environment Variables (ISSUERELAY_RETRY_MAX_RETRIES, ...)
    3. .env file
    4. YAML configuration file
    5. Built-in defaults

    Args:
        config_file: Path to the YAML configuration file (defaults to DEFAULT_CONFIG_FILE).
        env_file: Path to the .env file (searches upwards from cwd if None).
    """
    global _config, _loaded
    if _loaded:
        logger.debug("Configuration already loaded.")
        return

    _config = {}
    config_file = config_file or DEFAULT_CONFIG_FILE

    # 1. Load from YAML file (Lowest priority)
    if config_file.exists():
        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                yaml_config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e
        if isinstance(yaml_config, dict):
            _config.update(_flatten(yaml_config))
            logger.info(f"Loaded configuration from YAML: {config_file}")
        elif yaml_config is not None:
            logger.warning(f"YAML config file {config_file} did not contain a mapping.")
    else:
        logger.debug(f"YAML config file not found: {config_file}")

    # 2. Load from .env file (Medium priority)
    dotenv_path = env_file or find_dotenv_path()
    if dotenv_path:
        # override=False: real environment variables take precedence
        if load_dotenv(dotenv_path=dotenv_path, override=False):
            logger.info(f"Loaded environment variables from: {dotenv_path}")
    else:
        logger.debug("No .env file found at or above the current directory.")

    # 3. Environment Variables are read lazily by get_config

    _loaded = True
    logger.info("Configuration loading process completed.")


def reset_configuration() -> None:
    """Forgets loaded and runtime values so load_configuration can run again."""
    global _config, _runtime_config, _loaded
    _config = {}
    _runtime_config = {}
    _loaded = False


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value by dotted key (e.g. 'retry.max_retries').

    Args:
        key: The configuration key
        default: Value returned when no source defines the key. When omitted,
            the built-in default for the key is used.

    Returns:
        The configuration value
    """
    if key in _test_config:
        return _test_config[key]
    if key in _runtime_config:
        return _runtime_config[key]

    env_key = _env_name(key)
    if env_key in os.environ:
        return _coerce(os.environ[env_key])

    if key in _config:
        return _config[key]

    if default is not None:
        return default
    return _flatten(DEFAULTS).get(key)


def set_config(key: str, value: Any) -> None:
    """Sets a configuration value for the rest of the process.

    Args:
        key: Configuration key (e.g., 'retry.max_retries')
        value: Value to set
    """
    logger.debug(f"Setting config: {key} = {value!r}")
    _runtime_config[key] = value


def find_dotenv_path() -> Optional[Path]:
    """Searches for the .env file upwards from the current directory."""
    cwd = Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


# --- Convenience Functions ---

def get_endpoint() -> str:
    return str(get_config('transport.endpoint'))


def get_api_key() -> Optional[str]:
    """Gets the bearer token for the endpoint.

    Checks ISSUERELAY_API_KEY and LINEAR_API_KEY first, then yaml transport.api_key.
    """
    key = os.getenv(f"{ENV_PREFIX}API_KEY") or os.getenv("LINEAR_API_KEY") or get_config('transport.api_key')
    return str(key) if key else None


def get_request_timeout() -> float:
    return float(get_config('transport.timeout'))


def _get_int(key: str) -> int:
    """Reads an integer setting; fractional values are rejected instead of truncated."""
    value = get_config(key)
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"{key} must be a whole number, got {value!r}")
    return int(value)


def get_retry_policy_config() -> RetryPolicyConfig:
    """Builds the validated retry policy from configuration.

    Raises:
        ConfigurationError: If a value has the wrong type or violates an invariant.
    """
    try:
        return RetryPolicyConfig(
            max_retries=_get_int('retry.max_retries'),
            base_delay=float(get_config('retry.base_delay')),
            max_delay=float(get_config('retry.max_delay')),
            backoff_multiplier=float(get_config('retry.backoff_multiplier')),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"Invalid retry configuration: {e}") from e


def get_rate_limit_config() -> RateLimitConfig:
    """Builds the validated rate-limit config from configuration."""
    try:
        return RateLimitConfig(
            max_requests=_get_int('rate_limit.max_requests'),
            window_seconds=float(get_config('rate_limit.window_seconds')),
        )
    except (TypeError, ValueError) as e:
        if isinstance(e, ConfigurationError):
            raise
        raise ConfigurationError(f"Invalid rate limit configuration: {e}") from e


def write_default_config(path: Optional[Path] = None, overwrite: bool = False) -> Path:
    """Writes a YAML file containing every default setting.

    Raises:
        FileExistsError: If the file exists and ``overwrite`` is False.
    """
    path = path or DEFAULT_CONFIG_FILE
    if path.exists() and not overwrite:
        raise FileExistsError(f"Configuration file already exists: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.safe_dump(DEFAULTS, f, sort_keys=False)
    logger.info(f"Wrote default configuration to {path}")
    return path


def set_config_for_testing(config_dict: Dict[str, Any]) -> None:
    """
    Set configuration values for testing purposes.
    These values will override any existing configuration.

    Args:
        config_dict: Dictionary of configuration values to set
    """
    _test_config.update(config_dict)
    logger.debug(f"Set testing configuration: {config_dict}")


def clear_test_config() -> None:
    """Clear all testing configuration values."""
    _test_config.clear()
    logger.debug("Cleared testing configuration")
