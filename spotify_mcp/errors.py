"""
Exceptions raised by the Spotify MCP server and classification of Web API failures.
"""

from typing import Optional

from spotipy.exceptions import SpotifyException

from spotify_mcp.data_types import GrantMode


class ConfigurationError(Exception):
    """Raised when required configuration is missing or malformed."""


class TokenGrantError(Exception):
    """Exception raised when the accounts service rejects a token request."""

    def __init__(self, status: int, error: str, description: Optional[str] = None):
        self.status = status
        self.error = error
        self.description = description
        message = f"Token request rejected ({status}): {error}"
        if description:
            message += f" - {description}"
        super().__init__(message)


class AuthenticationFailure(Exception):
    """Exception raised when no access token could be obtained."""

    def __init__(self, grant_mode: GrantMode, original_error: Exception):
        self.grant_mode = grant_mode
        self.original_error = original_error
        super().__init__(
            f"Failed to obtain access token using {grant_mode.value} grant: {original_error}"
        )


class UserActionableError(Exception):
    """A remote failure the user can fix, carrying a remediation message."""

    message = "Error: Spotify request failed."

    def __init__(self, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(self.message)


class NotPremium(UserActionableError):
    message = "Error: This functionality requires a Spotify Premium account."


class MissingPermission(UserActionableError):
    message = (
        "Error: Missing required permissions. Make sure your refresh token has "
        "the user-modify-playback-state scope."
    )


class NoActiveDevice(UserActionableError):
    message = "Error: No active Spotify playback device found. Please open Spotify on a device first."


class PlaybackUnavailable(UserActionableError):
    """Playback was requested while only the client-credentials grant is possible."""
    message = "Error: Playback control requires a refresh token. Set SPOTIFY_REFRESH_TOKEN to enable it."


# Values of the "reason" field in Web API player error bodies
_REASON_CODES = {
    "PREMIUM_REQUIRED": NotPremium,
    "NOT_PREMIUM": NotPremium,
    "NO_ACTIVE_DEVICE": NoActiveDevice,
}

# Checked in order against the error text when no structured reason is present
_TEXT_MARKERS = (
    ("NOT_PREMIUM", NotPremium),
    ("PERMISSION", MissingPermission),
    ("NO_ACTIVE_DEVICE", NoActiveDevice),
)


def classify_spotify_error(error: Exception) -> Optional[UserActionableError]:
    """
    Map a failed Web API call onto a user actionable error.

    Uses the structured ``reason`` of a SpotifyException when the API supplied
    one, then falls back to matching known markers in the error text.

    Args:
        error: The exception raised by the remote call

    Returns:
        The classified error, or None when the failure is not recognised
    """
    if isinstance(error, SpotifyException):
        reason = (getattr(error, "reason", None) or "").upper()
        if reason in _REASON_CODES:
            return _REASON_CODES[reason](error)
        if error.http_status == 403 and "scope" in str(error.msg).lower():
            return MissingPermission(error)

    text = str(error)
    for marker, error_class in _TEXT_MARKERS:
        if marker in text:
            return error_class(error)
    return None


def describe_error(error: Exception, action: str) -> str:
    """Text shown to the user for a failed operation."""
    if isinstance(error, UserActionableError):
        return error.message
    if isinstance(error, AuthenticationFailure):
        return f"Error: Failed to authenticate with Spotify: {error.original_error}"
    classified = classify_spotify_error(error)
    if classified is not None:
        return classified.message
    return f"Error {action}: {error}"
