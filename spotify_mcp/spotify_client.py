"""
Spotify Web API client used by the MCP tools.

Each call obtains a valid access token from the TokenManager and runs the
blocking spotipy request in a worker thread. Errors from the Web API are
raised unchanged; turning them into user facing text is left to SpotifyTools.
"""

import asyncio
import logging
import re
from typing import Any, Callable, Dict, List, Optional

import spotipy

from spotify_mcp.data_types import (
    DeviceSummary,
    NowPlaying,
    PlaylistSummary,
    PlaylistTrack,
    PlaylistTracks,
    TrackSummary,
)
from spotify_mcp.errors import PlaybackUnavailable
from spotify_mcp.token_manager import TokenManager

_logger = logging.getLogger(__name__)

URI_SCHEME = "spotify"

_ID = r"[A-Za-z0-9_-]+"
_URI_PATTERN = re.compile(rf"^{URI_SCHEME}:(?P<type>[a-z]+):(?P<id>{_ID})$")
_ID_PATTERN = re.compile(rf"^{_ID}$")
_URL_PATTERN = re.compile(rf"^https?://open\.spotify\.com/(?:intl-[a-z]+/)?(?P<type>[a-z]+)/(?P<id>{_ID})(?:[/?#]|$)")


def normalize_uri(value: str, resource_type: str) -> str:
    """
    Normalize an identifier to the ``spotify:<type>:<id>`` URI form.

    Accepts a bare id, a URI or an open.spotify.com link. Normalizing an
    already normalized value returns it unchanged.
    """
    value = value.strip()
    match = _URI_PATTERN.match(value) or _URL_PATTERN.match(value)
    if match:
        if match.group("type") != resource_type:
            raise ValueError(f"Expected a {resource_type} identifier, got a {match.group('type')}: {value}")
        return f"{URI_SCHEME}:{resource_type}:{match.group('id')}"
    if value.startswith(f"{URI_SCHEME}:"):
        raise ValueError(f"Malformed Spotify URI: {value}")
    if not _ID_PATTERN.match(value):
        raise ValueError(f"Invalid Spotify {resource_type} id: {value!r}")
    return f"{URI_SCHEME}:{resource_type}:{value}"


def extract_id(value: str, resource_type: str) -> str:
    """Bare id of a normalized identifier."""
    return normalize_uri(value, resource_type).rsplit(":", 1)[-1]


def _clamp(limit: Optional[int], default: int, maximum: int) -> int:
    if limit is None:
        return default
    return min(max(limit, 1), maximum)


class SpotifyClient:
    """Async facade over the Spotify Web API."""

    def __init__(
        self,
        token_manager: TokenManager,
        request_timeout: float = 10.0,
        spotify_factory: Optional[Callable[[str], spotipy.Spotify]] = None,
    ):
        """
        Initialize Spotify client.

        Args:
            token_manager: Source of valid access tokens
            request_timeout: Timeout in seconds for each Web API request
            spotify_factory: Builds a spotipy client for a token; overridden in tests
        """
        self.token_manager = token_manager
        self.request_timeout = request_timeout
        self._spotify_factory = spotify_factory or self._create_spotify

    def _create_spotify(self, token: str) -> spotipy.Spotify:
        # retries disabled, a failed call is reported rather than repeated
        return spotipy.Spotify(
            auth=token,
            requests_timeout=self.request_timeout,
            retries=0,
            status_retries=0,
        )

    async def _call(self, method: str, *args, **kwargs) -> Any:
        token = await self.token_manager.ensure_valid_token()
        spotify = self._spotify_factory(token)
        _logger.debug(f"Spotify API call: {method}")
        return await asyncio.to_thread(getattr(spotify, method), *args, **kwargs)

    def _ensure_playback_allowed(self) -> None:
        if not self.token_manager.has_user_scope:
            raise PlaybackUnavailable()

    async def search_tracks(self, query: str, limit: int = 5) -> List[TrackSummary]:
        limit = _clamp(limit, 5, 50)
        _logger.info(f"Searching for tracks: '{query}' (limit: {limit})")
        results = await self._call("search", q=query, type="track", limit=limit)
        items = ((results or {}).get("tracks") or {}).get("items") or []
        return [TrackSummary.from_api(item) for item in items if item]

    async def play_track(self, track_id: str) -> str:
        """Start playback of a single track and return its URI."""
        self._ensure_playback_allowed()
        uri = normalize_uri(track_id, "track")
        await self._call("start_playback", uris=[uri])
        return uri

    async def get_currently_playing(self) -> Optional[NowPlaying]:
        playback = await self._call("current_user_playing_track")
        if not playback or not playback.get("item"):
            return None
        return NowPlaying.from_api(playback)

    async def get_devices(self) -> List[DeviceSummary]:
        response = await self._call("devices")
        devices = (response or {}).get("devices") or []
        return [DeviceSummary(**{key: device.get(key) for key in DeviceSummary.model_fields}) for device in devices]

    async def get_user_playlists(self, limit: int = 20) -> List[PlaylistSummary]:
        limit = _clamp(limit, 20, 50)
        response = await self._call("current_user_playlists", limit=limit)
        items = (response or {}).get("items") or []
        return [PlaylistSummary.from_api(item) for item in items if item]

    async def get_playlist(self, playlist_id: str) -> Dict[str, Any]:
        """Playlist metadata (name and id only)."""
        return await self._call("playlist", extract_id(playlist_id, "playlist"), fields="id,name")

    async def get_playlist_tracks(self, playlist_id: str, limit: int = 50) -> PlaylistTracks:
        limit = _clamp(limit, 50, 100)
        bare_id = extract_id(playlist_id, "playlist")
        playlist = await self.get_playlist(bare_id)
        response = await self._call("playlist_items", bare_id, limit=limit)
        items = (response or {}).get("items") or []
        return PlaylistTracks(
            playlist_name=playlist.get("name", ""),
            total_tracks=(response or {}).get("total", len(items)),
            tracks=[PlaylistTrack.from_api(position, item) for position, item in enumerate(items, 1)],
        )

    async def play_playlist(self, playlist_id: str, shuffle: bool = False) -> str:
        """
        Set the shuffle state and start playback of a playlist.

        Returns:
            The playlist name
        """
        self._ensure_playback_allowed()
        uri = normalize_uri(playlist_id, "playlist")
        playlist = await self.get_playlist(uri)
        await self._call("shuffle", bool(shuffle))
        await self._call("start_playback", context_uri=uri)
        return playlist.get("name", "")

    async def get_current_user(self) -> Dict[str, Any]:
        return await self._call("current_user")
