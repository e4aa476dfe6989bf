"""
Text results for the Spotify MCP tools.

Every method returns the text shown to the caller. Failures are reported as
text too, so a tool call never raises.
"""

import json
import logging
from typing import Any, List, Optional

from spotify_mcp.config import Config, ENV_VARS
from spotify_mcp.errors import describe_error
from spotify_mcp.spotify_client import SpotifyClient

_logger = logging.getLogger(__name__)

NO_TRACKS_FOUND = "No tracks found matching your query."
NO_PLAYLISTS_FOUND = "No playlists found."
NOTHING_PLAYING = "No track currently playing."
NO_DEVICES_FOUND = "No available Spotify devices found."

# Upper bound on playlists scanned when looking one up by name
PLAYLIST_LOOKUP_LIMIT = 50


def _to_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def _order(shuffle: bool) -> str:
    return "on shuffle mode" if shuffle else "in order"


class SpotifyTools:
    """Formats SpotifyClient results and errors for the tool boundary."""

    def __init__(self, client: SpotifyClient, config: Optional[Config] = None):
        self.client = client
        self.config = config

    async def search(self, query: str, limit: int = 5) -> List[str]:
        """One JSON document per matching track."""
        try:
            tracks = await self.client.search_tracks(query, limit)
        except Exception as e:
            _logger.error(f"Error searching for tracks: {e}")
            return [describe_error(e, "searching for tracks")]

        if not tracks:
            return [NO_TRACKS_FOUND]
        return [_to_json(track.model_dump()) for track in tracks]

    async def play(self, track_id_or_uri: str) -> str:
        try:
            uri = await self.client.play_track(track_id_or_uri)
        except Exception as e:
            _logger.error(f"Error playing track: {e}")
            return describe_error(e, "playing track")
        return f"Now playing track with URI: {uri}"

    async def currently_playing(self) -> str:
        try:
            now_playing = await self.client.get_currently_playing()
        except Exception as e:
            _logger.error(f"Error getting currently playing track: {e}")
            return describe_error(e, "getting currently playing track")

        if now_playing is None:
            return NOTHING_PLAYING
        return _to_json(now_playing.to_display())

    async def devices(self) -> str:
        try:
            devices = await self.client.get_devices()
        except Exception as e:
            _logger.error(f"Error getting devices: {e}")
            return describe_error(e, "getting devices")

        if not devices:
            return NO_DEVICES_FOUND
        return _to_json([device.model_dump() for device in devices])

    async def playlists(self, limit: int = 20) -> str:
        try:
            playlists = await self.client.get_user_playlists(limit)
        except Exception as e:
            _logger.error(f"Error getting user playlists: {e}")
            return describe_error(e, "getting user playlists")

        if not playlists:
            return NO_PLAYLISTS_FOUND
        return _to_json([playlist.model_dump() for playlist in playlists])

    async def playlist_tracks(self, playlist_id_or_uri: str, limit: int = 50) -> str:
        try:
            result = await self.client.get_playlist_tracks(playlist_id_or_uri, limit)
        except Exception as e:
            _logger.error(f"Error getting playlist tracks: {e}")
            return describe_error(e, "getting playlist tracks")

        if not result.tracks:
            return f'Playlist "{result.playlist_name}" is empty.'
        return _to_json(result.model_dump(exclude_none=True))

    async def play_playlist(self, playlist_id_or_uri: str, shuffle: bool = False) -> str:
        try:
            name = await self.client.play_playlist(playlist_id_or_uri, shuffle)
        except Exception as e:
            _logger.error(f"Error playing playlist: {e}")
            return describe_error(e, "playing playlist")
        return f'Now playing playlist "{name}" {_order(shuffle)}.'

    async def search_and_play(self, query: str) -> str:
        """
        Search for a track and play the top result.

        Playback is only attempted when the search found something; a failed
        search is reported as is.
        """
        try:
            tracks = await self.client.search_tracks(query, 1)
        except Exception as e:
            _logger.error(f"Error in search-and-play: {e}")
            return describe_error(e, "searching for tracks")

        if not tracks:
            return f'No tracks found matching "{query}"'

        track = tracks[0]
        try:
            await self.client.play_track(track.uri or track.id)
        except Exception as e:
            _logger.error(f"Error in search-and-play: {e}")
            return describe_error(e, "trying to play track")
        return f'Found and playing: "{track.name}" by {track.artist}'

    async def find_playlist_and_play(self, name: str, shuffle: bool = False) -> str:
        """
        Play the first of the user's playlists whose name contains ``name``.

        Matching is a case-insensitive substring test over the first
        PLAYLIST_LOOKUP_LIMIT playlists.
        """
        try:
            playlists = await self.client.get_user_playlists(PLAYLIST_LOOKUP_LIMIT)
        except Exception as e:
            _logger.error(f"Error in find-playlist: {e}")
            return describe_error(e, "trying to find playlist")

        if not playlists:
            return "No playlists found for your account."

        search_term = name.lower()
        playlist = next((p for p in playlists if search_term in p.name.lower()), None)
        if playlist is None:
            return f'No playlists found matching "{name}".'

        try:
            await self.client.play_playlist(playlist.id, shuffle)
        except Exception as e:
            _logger.error(f"Error in find-playlist: {e}")
            return describe_error(e, "trying to play playlist")
        return f'Found and playing playlist: "{playlist.name}" {_order(shuffle)}'

    async def debug_config(self) -> str:
        """Human readable report of configuration, token, account and device status."""
        def status(key: str) -> str:
            return "✅ Set" if self.config is not None and self.config.is_set(key) else "❌ Missing"

        token_status = "❓ Not tested"
        premium_status = "❓ Unknown"
        active_device = "❓ Not checked"

        try:
            await self.client.token_manager.ensure_valid_token()
            token_status = "✅ Successfully obtained access token"
            if not self.client.token_manager.has_user_scope:
                token_status += " (client credentials only, no playback control)"

            try:
                user = await self.client.get_current_user()
                product = (user or {}).get("product")
                if product == "premium":
                    premium_status = "✅ Premium account"
                else:
                    premium_status = f"❌ Non-premium account ({product})"
            except Exception as e:
                _logger.error(f"Could not get user info: {e}")
                premium_status = "❌ Failed to verify premium status"

            try:
                devices = await self.client.get_devices()
                if devices:
                    active = [device.name for device in devices if device.is_active]
                    if active:
                        active_device = f"✅ Active devices: {', '.join(active)}"
                    else:
                        active_device = "❌ No active devices found. Open Spotify on a device first."
                else:
                    active_device = "❌ No devices found. Open Spotify on at least one device."
            except Exception as e:
                _logger.error(f"Could not get devices: {e}")
                active_device = "❌ Failed to check devices - likely missing permissions"
        except Exception as e:
            token_status = f"❌ Failed to get access token: {e}"

        variables = "\n".join(
            f"- {ENV_VARS[key]}: {status(key)}"
            for key in ("client_id", "client_secret", "redirect_uri", "refresh_token")
        )
        return f"""=== Spotify MCP Configuration Debug ===

Environment Variables:
{variables}

Authentication:
- Token Status: {token_status}
- Premium Status: {premium_status}
- Active Device: {active_device}

If any of these show errors, please check the following:
1. For missing environment variables: Add them to your environment or MCP client configuration
2. For token failures: Your refresh token may be expired. Generate a new one with `python -m spotify_mcp auth`
3. For non-premium account: Playback control requires Spotify Premium
4. For no active devices: Open Spotify on a device and play something first
"""
