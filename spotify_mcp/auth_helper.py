"""
Helper for obtaining a Spotify refresh token.

Server mode starts a small local web server: visiting /login redirects to the
Spotify consent page, and the redirect back exchanges the authorization code
for tokens and prints the refresh token. Manual mode prints the consent URL and
reads the redirect URL pasted by the user instead.

Both modes use the configured redirect URI (SPOTIFY_REDIRECT_URI); the server
listens on its host, port and path. Without one, or when a port is given
explicitly, http://localhost:<port> is used and must be registered as a
redirect URI in the Spotify app settings.
"""

import asyncio
import logging
import secrets
from typing import Callable, List, Optional
from urllib.parse import urlparse, parse_qs

from aiohttp import web

from spotify_mcp.auth import SpotifyTokenClient
from spotify_mcp.errors import TokenGrantError

_logger = logging.getLogger(__name__)

STATE_KEY = "spotify_auth_state"
DEFAULT_PORT = 8888

SUCCESS_PAGE = """
<h1>Authorization Successful</h1>
<p>Please add the following refresh token to your environment:</p>
<pre>SPOTIFY_REFRESH_TOKEN={refresh_token}</pre>
<p><strong>Note:</strong> Keep this token secret!</p>
"""


def extract_code(redirect_url: str) -> Optional[str]:
    """Authorization code from the URL Spotify redirected to, if present."""
    params = parse_qs(urlparse(redirect_url.strip()).query)
    codes = params.get("code")
    return codes[0] if codes else None


class RefreshTokenHelper:
    """Local OAuth callback server that captures a refresh token."""

    def __init__(
        self,
        token_client: SpotifyTokenClient,
        scopes: List[str],
        port: int = DEFAULT_PORT,
        host: str = "localhost",
        redirect_uri: Optional[str] = None,
    ):
        self.token_client = token_client
        self.scopes = scopes
        if redirect_uri:
            parsed = urlparse(redirect_uri)
            if parsed.scheme != "http" or not parsed.hostname:
                raise ValueError(f"Redirect URI must be a local http:// address: {redirect_uri}")
            host = parsed.hostname
            port = parsed.port or 80
        self.port = port
        self.host = host
        self.redirect_uri = redirect_uri or f"http://{host}:{port}"
        self.callback_path = urlparse(self.redirect_uri).path or "/"
        self._result: Optional[asyncio.Future] = None

    def create_app(self) -> web.Application:
        self._result = asyncio.get_running_loop().create_future()
        app = web.Application()
        app.router.add_get("/login", self.handle_login)
        app.router.add_get(self.callback_path, self.handle_callback)
        return app

    @property
    def result(self) -> asyncio.Future:
        return self._result

    async def handle_login(self, request: web.Request) -> web.Response:
        state = secrets.token_hex(16)
        url = self.token_client.get_authorize_url(self.scopes, state, self.redirect_uri)
        response = web.Response(status=302, headers={"Location": url})
        response.set_cookie(STATE_KEY, state)
        return response

    async def handle_callback(self, request: web.Request) -> web.Response:
        error = request.query.get("error")
        if error:
            _logger.error(f"Authorization denied: {error}")
            return web.Response(status=400, text=f"Authorization failed: {error}")

        code = request.query.get("code")
        if not code:
            return web.Response(status=400, text="Missing authorization code. Start at /login.")

        expected_state = request.cookies.get(STATE_KEY)
        if not expected_state or request.query.get("state") != expected_state:
            return web.Response(status=400, text="State mismatch. Start again at /login.")

        try:
            tokens = await self.token_client.authorization_code_grant(code, self.redirect_uri)
        except TokenGrantError as e:
            _logger.error(f"Error exchanging code for tokens: {e}")
            return web.Response(status=502, text="Error acquiring tokens. Check the console for details.")

        if not tokens.refresh_token:
            return web.Response(status=502, text="Spotify did not return a refresh token.")

        if not self._result.done():
            self._result.set_result(tokens.refresh_token)
        return web.Response(
            text=SUCCESS_PAGE.format(refresh_token=tokens.refresh_token),
            content_type="text/html",
        )

    async def run(self, output: Callable[[str], None] = print) -> str:
        """Serve until a refresh token has been captured and return it."""
        app = self.create_app()
        runner = web.AppRunner(app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        await site.start()

        output(f"""
===== Spotify API Authorization =====

1. Visit http://{self.host}:{self.port}/login in your browser
2. Log in to Spotify and authorize this application
3. Copy the refresh token that appears and add it to your environment
""")
        try:
            refresh_token = await self._result
            # let the success page reach the browser before shutting down
            await asyncio.sleep(1)
        finally:
            await runner.cleanup()

        output(f"SPOTIFY_REFRESH_TOKEN={refresh_token}")
        return refresh_token


async def run_manual(
    token_client: SpotifyTokenClient,
    scopes: List[str],
    redirect_uri: str,
    read_input: Callable[[str], str] = input,
    output: Callable[[str], None] = print,
) -> Optional[str]:
    """
    Authorize by pasting the redirect URL instead of running a callback server.

    Returns:
        The refresh token, or None if no code could be extracted
    """
    state = secrets.token_hex(8)
    url = token_client.get_authorize_url(scopes, state, redirect_uri)
    output(f"""
===== Spotify API Authorization =====

1. Visit this URL in your browser:
{url}

2. Log in to Spotify and authorize the application
3. You'll be redirected to {redirect_uri}?code=XXXX
4. Copy the entire URL from your browser and paste it below
""")
    redirect_url = await asyncio.to_thread(read_input, "Redirect URL: ")
    code = extract_code(redirect_url)
    if not code:
        output("Could not extract code from the URL. Please try again.")
        return None

    tokens = await token_client.authorization_code_grant(code, redirect_uri)
    output(f"SPOTIFY_REFRESH_TOKEN={tokens.refresh_token}")
    return tokens.refresh_token
