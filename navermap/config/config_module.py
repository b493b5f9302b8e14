"""
Configuration management module for the Naver Maps gateway.

Handles loading environment variables, accessing configuration values,
validating required configuration keys, and building the resolved
settings value shared by the gateway clients.
"""

import os
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, List, Optional
from dotenv import load_dotenv

from ..gateway.gateway_auth import ApiKeyCredential, SignedCredential
from ..gateway.gateway_executor import RetryPolicy


REQUIRED_KEYS = ["NAVER_CLIENT_ID", "NAVER_CLIENT_SECRET"]

DEFAULT_TIMEOUT_MS = 30000
DEFAULT_MAX_RETRIES = 3
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
LOG_LEVEL_ALIASES = {"WARN": "WARNING"}


class ConfigError(Exception):
    """Custom exception for configuration-related errors."""
    pass


@dataclass(frozen=True)
class Settings:
    """Resolved, read-only configuration for one process."""

    naver_client_id: str = field(repr=False)
    naver_client_secret: str = field(repr=False)
    ncloud_access_key: Optional[str] = field(default=None, repr=False)
    ncloud_secret_key: Optional[str] = field(default=None, repr=False)
    log_level: str = "INFO"
    request_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(timeout_ms=self.request_timeout_ms,
                           max_retries=self.max_retries)

    @property
    def maps_credential(self) -> ApiKeyCredential:
        return ApiKeyCredential(client_id=self.naver_client_id,
                                client_secret=self.naver_client_secret)

    @property
    def billing_available(self) -> bool:
        return bool(self.ncloud_access_key and self.ncloud_secret_key)

    @property
    def billing_credential(self) -> SignedCredential:
        if not self.billing_available:
            raise ConfigError(
                "NCLOUD_ACCESS_KEY and NCLOUD_SECRET_KEY are required for the billing API"
            )
        return SignedCredential(access_key=self.ncloud_access_key,
                                secret_key=self.ncloud_secret_key)


def load_config(env_path: str = ".env") -> None:
    """
    Load environment variables from a .env file.

    Args:
        env_path: Path to the .env file (default: ".env")
    """
    logger = logging.getLogger(__name__)

    if os.path.exists(env_path):
        load_dotenv(env_path, override=True)
        logger.info(f"Loaded configuration from {env_path}")
    else:
        logger.warning(f"Configuration file {env_path} not found, using system environment variables only")


def get_config(key: str, default: Any = None) -> Any:
    """
    Get a configuration value from environment variables.

    Args:
        key: Environment variable key
        default: Default value if key not found

    Returns:
        Configuration value or default
    """
    logger = logging.getLogger(__name__)

    value = os.getenv(key, default)

    if value == default and default is not None:
        logger.debug(f"Configuration key '{key}' not found, using default value: {default}")
    elif value is None:
        logger.debug(f"Configuration key '{key}' not found and no default provided")

    return value


def validate_config(required_keys: List[str]) -> None:
    """
    Validate that all required configuration keys are present and non-empty.

    Args:
        required_keys: List of required environment variable keys

    Raises:
        ConfigError: If any required key is missing or empty
    """
    logger = logging.getLogger(__name__)
    missing_keys = []
    empty_keys = []

    for key in required_keys:
        value = os.getenv(key)
        if value is None:
            missing_keys.append(key)
        elif value.strip() == "":
            empty_keys.append(key)

    if missing_keys or empty_keys:
        error_msg = "Configuration validation failed:"
        if missing_keys:
            error_msg += f" Missing keys: {', '.join(missing_keys)}."
        if empty_keys:
            error_msg += f" Empty keys: {', '.join(empty_keys)}."

        logger.error(error_msg)
        raise ConfigError(error_msg)

    logger.info(f"Configuration validation passed for keys: {', '.join(required_keys)}")


def _get_int(key: str, default: int, minimum: int) -> int:
    raw = get_config(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(str(raw).strip())
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got '{raw}'")
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def load_settings(env_path: str = ".env") -> Settings:
    """
    Load, validate and resolve the process settings.

    Args:
        env_path: Path to the .env file

    Returns:
        Immutable Settings value

    Raises:
        ConfigError: On missing credentials or malformed values
    """
    load_config(env_path)
    validate_config(REQUIRED_KEYS)

    access_key = get_config("NCLOUD_ACCESS_KEY") or None
    secret_key = get_config("NCLOUD_SECRET_KEY") or None
    if bool(access_key) != bool(secret_key):
        raise ConfigError(
            "Both NCLOUD_ACCESS_KEY and NCLOUD_SECRET_KEY must be provided together for billing API"
        )

    log_level = str(get_config("LOG_LEVEL", "INFO")).strip().upper()
    log_level = LOG_LEVEL_ALIASES.get(log_level, log_level)
    if log_level not in LOG_LEVELS:
        raise ConfigError(
            f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got '{log_level}'"
        )

    return Settings(
        naver_client_id=get_config("NAVER_CLIENT_ID"),
        naver_client_secret=get_config("NAVER_CLIENT_SECRET"),
        ncloud_access_key=access_key,
        ncloud_secret_key=secret_key,
        log_level=log_level,
        request_timeout_ms=_get_int("REQUEST_TIMEOUT", DEFAULT_TIMEOUT_MS, 1),
        max_retries=_get_int("MAX_RETRIES", DEFAULT_MAX_RETRIES, 0),
    )


_settings: Optional[Settings] = None
_settings_lock = threading.Lock()


def get_settings(env_path: str = ".env") -> Settings:
    """Return the process settings, building them exactly once."""
    global _settings

    if _settings is None:
        with _settings_lock:
            if _settings is None:
                _settings = load_settings(env_path)
    return _settings


def reset_settings() -> None:
    """Drop the cached settings (tests only)."""
    global _settings

    with _settings_lock:
        _settings = None
