"""
Tests for the Spotify Web API client and identifier normalization.
"""

import unittest
import sys
from pathlib import Path
from unittest.mock import Mock, MagicMock, AsyncMock

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from spotify_mcp.errors import PlaybackUnavailable
from spotify_mcp.spotify_client import SpotifyClient, normalize_uri, extract_id


def make_client(spotify: MagicMock, user_scope: bool = True):
    token_manager = Mock()
    token_manager.ensure_valid_token = AsyncMock(return_value="access-token")
    token_manager.has_user_scope = user_scope
    factory = Mock(return_value=spotify)
    return SpotifyClient(token_manager, spotify_factory=factory), token_manager, factory


class TestNormalizeUri(unittest.TestCase):
    """Test suite for identifier normalization."""

    def test_bare_id(self):
        self.assertEqual(normalize_uri("abc123", "track"), "spotify:track:abc123")

    def test_uri_unchanged(self):
        self.assertEqual(normalize_uri("spotify:track:abc123", "track"), "spotify:track:abc123")

    def test_idempotent(self):
        once = normalize_uri("abc123", "track")
        self.assertEqual(normalize_uri(once, "track"), once)
        playlist = normalize_uri("37i9dQZF1DXcBWIGoYBM5M", "playlist")
        self.assertEqual(normalize_uri(playlist, "playlist"), playlist)

    def test_open_spotify_link(self):
        self.assertEqual(
            normalize_uri("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=abcd", "playlist"),
            "spotify:playlist:37i9dQZF1DXcBWIGoYBM5M",
        )

    def test_whitespace_stripped(self):
        self.assertEqual(normalize_uri("  abc123 \n", "track"), "spotify:track:abc123")

    def test_invalid_bare_ids_rejected(self):
        for value in ["", "   ", "abc:123", "abc 123", "abc/123"]:
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    normalize_uri(value, "track")

    def test_every_accepted_form_renormalizes(self):
        for value in ["abc123", "pl-summer", "spotify:track:abc123", "https://open.spotify.com/track/abc123"]:
            with self.subTest(value=value):
                once = normalize_uri(value, "track")
                self.assertEqual(normalize_uri(once, "track"), once)

    def test_malformed_link_rejected(self):
        with self.assertRaises(ValueError):
            normalize_uri("https://open.spotify.com/track/abc:123", "track")

    def test_wrong_resource_type(self):
        with self.assertRaises(ValueError):
            normalize_uri("spotify:album:abc123", "track")

    def test_extract_id(self):
        self.assertEqual(extract_id("spotify:playlist:pl1", "playlist"), "pl1")
        self.assertEqual(extract_id("pl1", "playlist"), "pl1")


class TestSpotifyClient(unittest.IsolatedAsyncioTestCase):
    """Test suite for SpotifyClient calls against a mocked spotipy client."""

    def setUp(self):
        self.spotify = MagicMock()
        self.client, self.token_manager, self.factory = make_client(self.spotify)

    async def test_every_call_checks_token(self):
        """The token manager is consulted before each request."""
        self.spotify.devices.return_value = {"devices": []}

        await self.client.get_devices()
        await self.client.get_devices()

        self.assertEqual(self.token_manager.ensure_valid_token.await_count, 2)
        self.factory.assert_called_with("access-token")

    async def test_search_tracks(self):
        self.spotify.search.return_value = {"tracks": {"items": [{
            "id": "t1",
            "name": "Bohemian Rhapsody",
            "artists": [{"name": "Queen"}],
            "album": {"name": "A Night at the Opera"},
            "uri": "spotify:track:t1",
            "duration_ms": 354320,
            "popularity": 90,
            "preview_url": None,
        }]}}

        tracks = await self.client.search_tracks("Bohemian Rhapsody", limit=1)

        self.spotify.search.assert_called_once_with(q="Bohemian Rhapsody", type="track", limit=1)
        self.assertEqual(len(tracks), 1)
        self.assertEqual(tracks[0].artist, "Queen")
        self.assertEqual(tracks[0].album, "A Night at the Opera")

    async def test_search_limit_clamped(self):
        self.spotify.search.return_value = {"tracks": {"items": []}}

        await self.client.search_tracks("anything", limit=500)

        self.assertEqual(self.spotify.search.call_args.kwargs["limit"], 50)

    async def test_play_track_normalizes_id(self):
        uri = await self.client.play_track("abc123")

        self.assertEqual(uri, "spotify:track:abc123")
        self.spotify.start_playback.assert_called_once_with(uris=["spotify:track:abc123"])

    async def test_play_rejected_without_user_scope(self):
        """Playback is refused up front when only client credentials are available."""
        client, token_manager, _ = make_client(self.spotify, user_scope=False)

        with self.assertRaises(PlaybackUnavailable):
            await client.play_track("abc123")
        with self.assertRaises(PlaybackUnavailable):
            await client.play_playlist("pl1")

        token_manager.ensure_valid_token.assert_not_awaited()
        self.spotify.start_playback.assert_not_called()

    async def test_play_playlist_sets_shuffle_then_plays(self):
        self.spotify.playlist.return_value = {"id": "pl1", "name": "Road Trip"}

        name = await self.client.play_playlist("spotify:playlist:pl1", shuffle=True)

        self.assertEqual(name, "Road Trip")
        self.spotify.playlist.assert_called_once_with("pl1", fields="id,name")
        self.spotify.shuffle.assert_called_once_with(True)
        self.spotify.start_playback.assert_called_once_with(context_uri="spotify:playlist:pl1")

    async def test_currently_playing_nothing(self):
        self.spotify.current_user_playing_track.return_value = None

        self.assertIsNone(await self.client.get_currently_playing())

    async def test_currently_playing_episode(self):
        self.spotify.current_user_playing_track.return_value = {
            "is_playing": True,
            "progress_ms": 1000,
            "item": {"id": "e1", "name": "Episode", "uri": "spotify:episode:e1", "duration_ms": 5000},
        }

        now_playing = await self.client.get_currently_playing()

        self.assertEqual(now_playing.type, "episode")
        self.assertTrue(now_playing.is_playing)
        self.assertNotIn("artist", now_playing.to_display())

    async def test_playlist_tracks(self):
        self.spotify.playlist.return_value = {"id": "pl1", "name": "Chill"}
        self.spotify.playlist_items.return_value = {
            "total": 2,
            "items": [
                {"added_at": "2024-01-01T00:00:00Z", "track": {
                    "id": "t1", "name": "Song", "artists": [{"name": "A"}, {"name": "B"}],
                    "album": {"name": "Album"}, "duration_ms": 1000, "uri": "spotify:track:t1",
                }},
                {"added_at": "2024-01-02T00:00:00Z", "track": None},
            ],
        }

        result = await self.client.get_playlist_tracks("pl1", limit=2)

        self.spotify.playlist_items.assert_called_once_with("pl1", limit=2)
        self.assertEqual(result.playlist_name, "Chill")
        self.assertEqual(result.total_tracks, 2)
        self.assertEqual(result.tracks[0].artist, "A, B")
        self.assertEqual(result.tracks[1].position, 2)
        self.assertEqual(result.tracks[1].name, "Unknown track")

    async def test_user_playlists(self):
        self.spotify.current_user_playlists.return_value = {"items": [{
            "id": "pl1",
            "name": "Summer Roadtrip",
            "description": "",
            "tracks": {"total": 12},
            "uri": "spotify:playlist:pl1",
            "public": False,
            "owner": {"id": "user1", "display_name": None},
            "images": [],
        }]}

        playlists = await self.client.get_user_playlists()

        self.spotify.current_user_playlists.assert_called_once_with(limit=20)
        self.assertEqual(playlists[0].owner, "user1")
        self.assertEqual(playlists[0].tracks_total, 12)
        self.assertIsNone(playlists[0].image)


if __name__ == "__main__":
    unittest.main(verbosity=2)
