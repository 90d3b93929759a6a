import os
import sys
import tomllib
from dataclasses import dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, ClassVar, TypeVar

import httpx
import keyring
from keyring.errors import KeyringError
from loguru import logger

from coinrest.models import Credentials

# --- Constants ---
APP_NAME = "coinrest"
# Use a platform-agnostic user config directory
if sys.platform == "win32":
    CONFIG_DIR = Path.home() / "AppData" / "Roaming" / APP_NAME
else:
    CONFIG_DIR = Path.home() / ".config" / APP_NAME

CONFIG_FILE = CONFIG_DIR / "config.toml"

# --- Keyring Service Name ---
KEYRING_SERVICE_NAME = f"{APP_NAME}-api-keys"

T = TypeVar("T")


@dataclass
class GeneralSettings:
    """General library settings."""

    log_level_console: str = "INFO"
    log_level_file: str = "DEBUG"
    log_directory: str = str(CONFIG_DIR / "logs")


@dataclass
class NetworkSettings:
    """Transport settings shared by every adapter."""

    connect_timeout: float = 5.0
    read_timeout: float = 15.0
    max_chain_depth: int = 5

    def timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.read_timeout, connect=self.connect_timeout)


@dataclass
class Settings:
    """Root container for all settings."""

    general: GeneralSettings = field(default_factory=GeneralSettings)
    network: NetworkSettings = field(default_factory=NetworkSettings)

    _instance: ClassVar["Settings | None"] = None

    @classmethod
    def get_instance(cls) -> "Settings":
        """Returns the lazily loaded, process-wide Settings object."""
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        cls._instance = None


def _update_dataclass(dc_instance: T, data: dict[str, Any]) -> T:
    """Recursively updates a dataclass instance from a dictionary."""
    for name in field_names(dc_instance):
        if name not in data:
            continue
        field_value = getattr(dc_instance, name)
        if is_dataclass(field_value):
            if not isinstance(data[name], dict):
                err_msg = f"Section '{name}' must be a table."
                raise ValueError(err_msg)
            _update_dataclass(field_value, data[name])
        else:
            setattr(dc_instance, name, data[name])
    return dc_instance


def field_names(dc_instance: Any) -> list[str]:
    """Helper to get field names from a dataclass instance."""
    return [f.name for f in dc_instance.__dataclass_fields__.values()]


def load_config(path: Path = CONFIG_FILE) -> Settings:
    """Loads settings from a TOML file, merging them with defaults.

    A missing file simply yields the defaults; nothing is written to disk.
    A file that cannot be decoded is reported and the defaults are used.

    Args:
        path: The path to the configuration file.

    Returns:
        A populated Settings object.
    """
    settings_obj = Settings()
    if not path.exists():
        logger.debug(f"No configuration file at '{path}'; using defaults.")
        return settings_obj

    logger.info(f"Loading configuration from '{path}'...")
    try:
        with path.open("rb") as f:
            user_config = tomllib.load(f)
        _update_dataclass(settings_obj, user_config)
        logger.success("Successfully loaded user configuration.")
    except (tomllib.TOMLDecodeError, ValueError) as e:
        logger.error(f"Error decoding TOML from '{path}': {e}")
        logger.warning("Using default settings due to configuration error.")
        settings_obj = Settings()

    return settings_obj


# --- Credential Management ---


def _env_names(exchange_name: str) -> tuple[str, str]:
    prefix = exchange_name.upper()
    return f"{prefix}_KEY", f"{prefix}_SECRET"


def get_api_credentials(exchange_name: str) -> Credentials:
    """Retrieves API key and secret for an exchange.

    The system keyring is consulted first. If it holds nothing for the
    exchange (or no keyring backend is available), the environment
    variables ``<EXCHANGE>_KEY`` and ``<EXCHANGE>_SECRET`` are used.

    Args:
        exchange_name: The name of the exchange (e.g., 'zaif').

    Returns:
        The credentials; empty fields mean nothing was found.
    """
    exchange_name = exchange_name.lower()
    api_key: str | None = None
    api_secret: str | None = None
    try:
        api_key = keyring.get_password(KEYRING_SERVICE_NAME, f"{exchange_name}_key")
        api_secret = keyring.get_password(KEYRING_SERVICE_NAME, f"{exchange_name}_secret")
    except KeyringError as e:
        logger.warning(f"Keyring unavailable for '{exchange_name}': {e}")

    if api_key and api_secret:
        logger.debug(f"Retrieved credentials for '{exchange_name}' from keyring.")
        return Credentials(api_key=api_key, api_secret=api_secret)

    key_var, secret_var = _env_names(exchange_name)
    env_key, env_secret = os.environ.get(key_var, ""), os.environ.get(secret_var, "")
    if env_key or env_secret:
        logger.debug(f"Retrieved credentials for '{exchange_name}' from environment.")
    return Credentials(api_key=env_key, api_secret=env_secret)


def set_api_credentials(exchange_name: str, api_key: str, api_secret: str) -> None:
    """Stores API key and secret for an exchange in the system keyring.

    Args:
        exchange_name: The name of the exchange.
        api_key: The API key to store.
        api_secret: The API secret to store.

    Raises:
        KeyringError: If the keyring backend refuses the write.
    """
    exchange_name = exchange_name.lower()
    keyring.set_password(KEYRING_SERVICE_NAME, f"{exchange_name}_key", api_key)
    keyring.set_password(KEYRING_SERVICE_NAME, f"{exchange_name}_secret", api_secret)
    logger.info(f"Successfully stored credentials for '{exchange_name}' in keyring.")
