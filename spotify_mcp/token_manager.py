"""
Access token lifecycle for Spotify Web API calls.

A TokenManager owns the current access token and its expiry. Every remote call
goes through ensure_valid_token(), which only contacts the accounts service when
the cached token is within the safety margin of its expiry. Check and refresh
run under a single asyncio.Lock, so callers racing on an expired token share
one grant instead of each issuing their own.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

import aiohttp

from spotify_mcp.auth import SpotifyTokenClient
from spotify_mcp.data_types import AccessToken, GrantMode, SpotifyCredentials, TokenResponse
from spotify_mcp.errors import AuthenticationFailure, ConfigurationError, TokenGrantError

_logger = logging.getLogger(__name__)

REFRESH_MARGIN_SECONDS = 60


class TokenManager:
    """Keeps a valid access token for the configured credentials."""

    def __init__(
        self,
        credentials: SpotifyCredentials,
        grant_client: Optional[SpotifyTokenClient] = None,
        clock: Callable[[], float] = time.time,
        refresh_margin: float = REFRESH_MARGIN_SECONDS,
    ):
        self.credentials = credentials
        self.grant_client = grant_client or SpotifyTokenClient(credentials)
        self.refresh_margin = refresh_margin
        self._clock = clock
        self._state = AccessToken()
        self._lock = asyncio.Lock()

    @property
    def grant_mode(self) -> GrantMode:
        """Grant flow the next refresh will use."""
        if self.credentials.has_refresh_token:
            return GrantMode.REFRESH_TOKEN
        return GrantMode.CLIENT_CREDENTIALS

    @property
    def has_user_scope(self) -> bool:
        """Whether tokens carry user permissions such as playback control."""
        return self.grant_mode is GrantMode.REFRESH_TOKEN

    @property
    def expires_at(self) -> float:
        return self._state.expires_at

    def is_valid(self, now: Optional[float] = None) -> bool:
        """True while the cached token is outside the refresh margin."""
        now = self._clock() if now is None else now
        return bool(self._state.value) and now < self._state.expires_at - self.refresh_margin

    async def ensure_valid_token(self) -> str:
        """
        Return an access token valid for at least the refresh margin.

        Returns:
            The bearer token value

        Raises:
            AuthenticationFailure: If the grant was rejected or could not be sent
        """
        async with self._lock:
            now = self._clock()
            if self.is_valid(now):
                return self._state.value

            grant_mode = self.grant_mode
            _logger.info(f"Refreshing Spotify access token using {grant_mode.value} grant")
            if grant_mode is GrantMode.CLIENT_CREDENTIALS:
                _logger.warning("No refresh token available - playback control requires a refresh token")

            if not (self.credentials.client_id and self.credentials.client_secret):
                raise AuthenticationFailure(
                    grant_mode,
                    ConfigurationError("SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set"),
                )

            try:
                response = await self._request_grant(grant_mode)
            except (TokenGrantError, aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
                _logger.error(f"Error refreshing Spotify access token: {e}")
                raise AuthenticationFailure(grant_mode, e) from e

            self._state = AccessToken(
                value=response.access_token,
                expires_at=now + response.expires_in - self.refresh_margin,
            )
            _logger.info(f"Spotify access token refreshed (expires in {response.expires_in}s)")
            return self._state.value

    async def _request_grant(self, grant_mode: GrantMode) -> TokenResponse:
        if grant_mode is GrantMode.REFRESH_TOKEN:
            return await self.grant_client.refresh_token_grant(self.credentials.refresh_token)
        return await self.grant_client.client_credentials_grant()
