"""
Client for the Spotify accounts service token endpoint.
"""

import logging
from typing import Optional, Dict, Any, List
from urllib.parse import urlencode

import aiohttp

from spotify_mcp.data_types import SpotifyCredentials, TokenResponse
from spotify_mcp.errors import TokenGrantError

_logger = logging.getLogger(__name__)

ACCOUNTS_URL = "https://accounts.spotify.com"
TOKEN_URL = f"{ACCOUNTS_URL}/api/token"
AUTHORIZE_URL = f"{ACCOUNTS_URL}/authorize"


class SpotifyTokenClient:
    """Performs OAuth2 grants against the accounts service."""

    def __init__(self, credentials: SpotifyCredentials, timeout: float = 10.0, token_url: str = TOKEN_URL):
        self.credentials = credentials
        self.timeout = timeout
        self.token_url = token_url

    async def refresh_token_grant(self, refresh_token: str) -> TokenResponse:
        """Exchange the long-lived refresh token for a user-scoped access token."""
        return await self._request_token({
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        })

    async def client_credentials_grant(self) -> TokenResponse:
        """Obtain an application token with catalog-only access."""
        return await self._request_token({"grant_type": "client_credentials"})

    async def authorization_code_grant(self, code: str, redirect_uri: Optional[str] = None) -> TokenResponse:
        """Exchange an authorization code from the consent redirect for tokens."""
        return await self._request_token({
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri or self.credentials.redirect_uri,
        })

    def get_authorize_url(self, scopes: List[str], state: str, redirect_uri: Optional[str] = None) -> str:
        """URL of the consent page the user has to visit."""
        params = {
            "client_id": self.credentials.client_id,
            "response_type": "code",
            "redirect_uri": redirect_uri or self.credentials.redirect_uri,
            "scope": " ".join(scopes),
            "state": state,
        }
        return f"{AUTHORIZE_URL}?{urlencode(params)}"

    async def _request_token(self, form: Dict[str, Any]) -> TokenResponse:
        """
        POST a grant request to the token endpoint.

        Raises:
            TokenGrantError: If the accounts service answers with an error status
            aiohttp.ClientError: On transport failures
        """
        auth = aiohttp.BasicAuth(self.credentials.client_id, self.credentials.client_secret)
        timeout = aiohttp.ClientTimeout(total=self.timeout)

        _logger.debug(f"Requesting token with grant_type={form['grant_type']}")
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(self.token_url, data=form, auth=auth) as response:
                if response.status == 200:
                    return TokenResponse(**(await response.json()))

                error_text = await response.text()
                try:
                    body = await response.json(content_type=None)
                except ValueError:
                    body = {}
                if not isinstance(body, dict):
                    body = {}
                raise TokenGrantError(
                    response.status,
                    body.get("error", error_text or "unknown_error"),
                    body.get("error_description"),
                )
