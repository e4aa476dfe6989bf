"""
Spotify MCP - Spotify Web API tools over the Model Context Protocol.

This module exposes track search, playback control, device listing and
playlist browsing as MCP tools, backed by an access token manager that
refreshes OAuth tokens on demand.
"""

from spotify_mcp.data_types import GrantMode, SpotifyCredentials, AccessToken, TokenResponse
from spotify_mcp.config import Config, EnvConfig, JSONConfig, load_config
from spotify_mcp.errors import (
    AuthenticationFailure,
    ConfigurationError,
    UserActionableError,
    NotPremium,
    MissingPermission,
    NoActiveDevice,
    PlaybackUnavailable,
    TokenGrantError,
)
from spotify_mcp.auth import SpotifyTokenClient
from spotify_mcp.token_manager import TokenManager
from spotify_mcp.spotify_client import SpotifyClient, normalize_uri, extract_id
from spotify_mcp.spotify_tools import SpotifyTools

__version__ = "1.0.0"
__all__ = [
    "GrantMode",
    "SpotifyCredentials",
    "AccessToken",
    "TokenResponse",
    "Config",
    "EnvConfig",
    "JSONConfig",
    "load_config",
    "AuthenticationFailure",
    "ConfigurationError",
    "UserActionableError",
    "NotPremium",
    "MissingPermission",
    "NoActiveDevice",
    "PlaybackUnavailable",
    "TokenGrantError",
    "SpotifyTokenClient",
    "TokenManager",
    "SpotifyClient",
    "normalize_uri",
    "extract_id",
    "SpotifyTools",
]
