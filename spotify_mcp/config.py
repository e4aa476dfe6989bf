"""
Configuration classes for the Spotify MCP server.
"""

import json
import os
from pathlib import Path
from typing import Dict, Any, Optional

from spotify_mcp.data_types import SpotifyCredentials
from spotify_mcp.errors import ConfigurationError


# Environment variable for each configuration key
ENV_VARS = {
    "client_id": "SPOTIFY_CLIENT_ID",
    "client_secret": "SPOTIFY_CLIENT_SECRET",
    "redirect_uri": "SPOTIFY_REDIRECT_URI",
    "refresh_token": "SPOTIFY_REFRESH_TOKEN",
    "request_timeout": "SPOTIFY_REQUEST_TIMEOUT",
    "log_level": "SPOTIFY_MCP_LOG_LEVEL",
}

REQUIRED_KEYS = ("client_id", "client_secret", "redirect_uri")

DEFAULT_SCOPES = [
    "user-read-playback-state",
    "user-modify-playback-state",
    "user-read-currently-playing",
    "playlist-read-private",
    "playlist-read-collaborative",
    "user-read-private",
]


class Config:
    """Base configuration class."""

    def __init__(self, config_dict: Optional[Dict[str, Any]] = None):
        self._config = self._get_default_config()
        if config_dict:
            self._config.update(config_dict)

    def _get_default_config(self) -> Dict[str, Any]:
        """Get default configuration values."""
        return {
            # Spotify application credentials
            "client_id": None,
            "client_secret": None,
            "redirect_uri": None,
            "refresh_token": None,          # None selects the client-credentials grant

            # Token lifecycle
            "refresh_margin": 60,           # seconds before expiry a token is treated as expired

            # Transport
            "request_timeout": 10,          # seconds, for both Web API and token requests

            # OAuth helper
            "auth_port": 8888,
            "scopes": list(DEFAULT_SCOPES),

            "log_level": "INFO",
        }

    def get_value(self, key: str) -> Any:
        """Get a configuration value."""
        return self._config.get(key)

    def set_value(self, key: str, value: Any) -> None:
        """Set a configuration value."""
        self._config[key] = value

    def get_config_dict(self) -> Dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config.copy()

    def is_set(self, key: str) -> bool:
        """Whether a configuration value is present and non-empty."""
        return bool(self._config.get(key))

    def missing_keys(self) -> list:
        """Required keys that have no value."""
        return [key for key in REQUIRED_KEYS if not self.is_set(key)]

    def get_credentials(self, strict: bool = True) -> SpotifyCredentials:
        """
        Build the immutable credentials used by the token manager.

        Args:
            strict: Raise on missing required values instead of leaving them empty

        Raises:
            ConfigurationError: If strict and a required value is missing
        """
        missing = self.missing_keys()
        if missing and strict:
            raise ConfigurationError(f"Missing required configuration: {self.describe_missing()}")
        return SpotifyCredentials(
            client_id=self._config.get("client_id") or "",
            client_secret=self._config.get("client_secret") or "",
            redirect_uri=self._config.get("redirect_uri") or "",
            refresh_token=self._config.get("refresh_token") or None,
        )

    def describe_missing(self) -> str:
        return ", ".join(ENV_VARS[key] for key in self.missing_keys())

    def get_request_timeout(self) -> float:
        value = self._config.get("request_timeout")
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid request timeout: {value!r}")


class EnvConfig(Config):
    """Configuration read from SPOTIFY_* environment variables."""

    def __init__(self, environ: Optional[Dict[str, str]] = None, overrides: Optional[Dict[str, Any]] = None):
        self.environ = os.environ if environ is None else environ
        config_dict = dict(overrides or {})
        for key, env_var in ENV_VARS.items():
            value = self.environ.get(env_var)
            if value:
                config_dict[key] = value
        super().__init__(config_dict)


class JSONConfig(Config):
    """Configuration loaded from a JSON file."""

    def __init__(self, json_path: str):
        self.json_path = Path(json_path)
        config_dict = self._load_from_json()
        super().__init__(config_dict)

    def _load_from_json(self) -> Dict[str, Any]:
        """Load configuration from JSON file."""
        if not self.json_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.json_path}")

        try:
            with open(self.json_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {self.json_path}: {e}")


# Convenience function for loading configuration
def load_config(config_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> Config:
    """
    Load configuration from the environment, layered over an optional JSON file.

    Args:
        config_path: Optional path to JSON configuration file
        environ: Environment mapping, defaults to os.environ

    Returns:
        Configuration instance
    """
    if config_path:
        file_config = JSONConfig(config_path).get_config_dict()
        return EnvConfig(environ, overrides=file_config)
    return EnvConfig(environ)
