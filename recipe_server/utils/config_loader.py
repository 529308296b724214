#!/usr/bin/env python3
"""Configuration loader for the Recipe Room server.

This module provides a centralized configuration management system. It handles
loading and merging configuration from multiple sources, with support for default
values, environment overrides and runtime updates.

Key Features:
- Hierarchical configuration management
- Default configuration values
- JSON file-based configuration
- Environment variable overrides (a .env file is honoured)
- Required values that fail startup loudly when missing
"""
import os
import json
import copy
import logging
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from .path_config import get_server_config_file, get_static_dir

logger = logging.getLogger(__name__)


class ConfigError(Exception):
    """Raised when the configuration is missing a required value or is invalid."""


DEFAULT_CONFIG: Dict[str, Any] = {
    "logging": {
        "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
        "cors_origins": "*",
        "log_level": "INFO",
        "static_dir": None,
    },
    "rooms": {
        "max_participants": 8,
        # 0 keeps every message for the life of the room
        "max_messages": 500,
    },
    "ai": {
        "base_url": "https://generativelanguage.googleapis.com/v1beta",
        "model": "gemini-pro",
        "api_key": None,
        "assistant_name": "AI Chef 🤖",
    },
}

# (environment variable, section, key, converter)
ENV_OVERRIDES = [
    ("HOST", "server", "host", str),
    ("PORT", "server", "port", int),
    ("LOG_LEVEL", "server", "log_level", str),
    ("GOOGLE_AI_API_KEY", "ai", "api_key", str),
    ("GOOGLE_AI_MODEL", "ai", "model", str),
]


class ConfigManager:
    def __init__(self, config_file: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        """Initialize the configuration manager.

        Args:
            config_file: JSON file merged over the defaults. Defaults to
                config/server_config.json.
            environ: Mapping consulted for overrides. Defaults to os.environ
                after loading a .env file.
        """
        self._config: Dict[str, Any] = {}
        self._config_file = config_file or get_server_config_file()
        if environ is None:
            load_dotenv()
            environ = dict(os.environ)
        self._load_defaults()
        self._load_config_file()
        self._apply_env_overrides(environ)
        self._validate()

    def _load_defaults(self) -> None:
        """Load default configuration values."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._config["server"]["static_dir"] = get_static_dir()

    def _load_config_file(self) -> None:
        """Merge the JSON config file over the defaults, if present."""
        if not os.path.exists(self._config_file):
            logger.debug(f"No config file at {self._config_file}, using defaults")
            return
        try:
            with open(self._config_file, 'r') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Error loading config file {self._config_file}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {self._config_file} must contain a JSON object")
        self._merge_config(self._config, file_config)
        logger.debug(f"Loaded config file {self._config_file}")

    def _apply_env_overrides(self, environ: Dict[str, str]) -> None:
        for env_name, section, key, convert in ENV_OVERRIDES:
            raw = environ.get(env_name)
            if raw is None or raw == "":
                continue
            try:
                self.set(section, key, convert(raw))
            except ValueError as e:
                raise ConfigError(f"Invalid value for {env_name}: {raw!r}") from e

    def _merge_config(self, base: Dict, update: Dict) -> None:
        """
        Recursively merge two configuration dictionaries.
        Args:
            base: Base configuration dictionary
            update: Dictionary with updates to merge
        """
        for key, value in update.items():
            if (
                key in base and
                isinstance(base[key], dict) and
                isinstance(value, dict)
            ):
                self._merge_config(base[key], value)
            else:
                base[key] = value

    def _validate(self) -> None:
        """Validate server and room configuration."""
        port = self.get("server", "port")
        if not isinstance(port, int) or isinstance(port, bool):
            raise ConfigError("Server port must be an integer")
        if not (0 < port < 65536):
            raise ConfigError(f"Server port out of range: {port}")

        max_participants = self.get("rooms", "max_participants")
        if not isinstance(max_participants, int) or max_participants < 1:
            raise ConfigError("rooms.max_participants must be a positive integer")

        max_messages = self.get("rooms", "max_messages")
        if not isinstance(max_messages, int) or max_messages < 0:
            raise ConfigError("rooms.max_messages must be a non-negative integer")

    def get(self, section: str, key: str, default: Any = None) -> Any:
        """
        Get a configuration value.
        Args:
            section: Configuration section
            key: Configuration key
            default: Default value if not found
        Returns:
            Configuration value or default
        """
        try:
            value = self._config[section][key]
        except KeyError:
            return default
        return default if value is None else value

    def require(self, section: str, key: str) -> Any:
        """Get a configuration value that has no default.

        Raises:
            ConfigError: if the value is missing or empty.
        """
        value = self.get(section, key)
        if value is None or value == "":
            raise ConfigError(f"Missing required configuration value {section}.{key}")
        return value

    def set(self, section: str, key: str, value: Any) -> None:
        """
        Set a configuration value.
        Args:
            section: Configuration section
            key: Configuration key
            value: Value to set
        """
        if section not in self._config:
            self._config[section] = {}
        self._config[section][key] = value

    @property
    def config(self) -> Dict[str, Any]:
        """Get the complete configuration dictionary."""
        return copy.deepcopy(self._config)
