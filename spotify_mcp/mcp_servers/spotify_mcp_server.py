#!/usr/bin/env python3
"""
Spotify MCP Server

Provides tools to control Spotify through the Web API:
- Track search and playback
- Currently playing track and available devices
- Playlist listing, browsing and playback
- Configuration troubleshooting

Requires SPOTIFY_CLIENT_ID, SPOTIFY_CLIENT_SECRET and SPOTIFY_REDIRECT_URI.
SPOTIFY_REFRESH_TOKEN enables the user scoped tools; without it only catalog
search works.
"""

import asyncio
import logging
from typing import List, Optional

from mcp.server import Server
from mcp.server.fastmcp import FastMCP
from mcp.server.stdio import stdio_server

from spotify_mcp.auth import SpotifyTokenClient
from spotify_mcp.config import Config, load_config
from spotify_mcp.spotify_client import SpotifyClient
from spotify_mcp.spotify_tools import SpotifyTools
from spotify_mcp.token_manager import TokenManager

_logger = logging.getLogger(__name__)

SERVER_NAME = "spotify-mcp"


def build_spotify_tools(config: Config) -> SpotifyTools:
    """Wire credentials, token manager and Web API client together."""
    missing = config.missing_keys()
    if missing:
        _logger.warning(f"Spotify configuration incomplete, missing: {config.describe_missing()}")

    credentials = config.get_credentials(strict=False)
    timeout = config.get_request_timeout()
    token_manager = TokenManager(
        credentials,
        grant_client=SpotifyTokenClient(credentials, timeout=timeout),
        refresh_margin=config.get_value("refresh_margin"),
    )
    if not token_manager.has_user_scope:
        _logger.warning("SPOTIFY_REFRESH_TOKEN not set - running with catalog access only")

    client = SpotifyClient(token_manager, request_timeout=timeout)
    return SpotifyTools(client, config)


def create_mcp_server(tools: SpotifyTools) -> FastMCP:
    """
    Register the Spotify tools on a new FastMCP server.

    Args:
        tools: Text facade the tools delegate to

    Returns:
        The configured FastMCP instance
    """
    mcp = FastMCP(SERVER_NAME)

    @mcp.tool(name="search", description="Search for tracks on Spotify by query (artist, track name, etc.)")
    async def search(query: str, limit: int = 5) -> List[str]:
        """
        Args:
            query: Search query (artist name, track name, etc.)
            limit: Maximum number of results to return (default: 5)
        """
        _logger.info(f"Searching for tracks: {query}")
        return await tools.search(query, limit)

    @mcp.tool(name="play", description="Play a specific track by ID or URI")
    async def play(track_id_or_uri: str) -> str:
        """
        Args:
            track_id_or_uri: Spotify track ID or URI (spotify:track:xxxx)
        """
        _logger.info(f"Playing track: {track_id_or_uri}")
        return await tools.play(track_id_or_uri)

    @mcp.tool(name="currently-playing", description="Get the currently playing track")
    async def currently_playing() -> str:
        _logger.info("Getting currently playing track")
        return await tools.currently_playing()

    @mcp.tool(name="devices", description="Get available Spotify playback devices")
    async def devices() -> str:
        _logger.info("Getting available devices")
        return await tools.devices()

    @mcp.tool(name="playlists", description="Get a list of the user's Spotify playlists")
    async def playlists(limit: int = 20) -> str:
        """
        Args:
            limit: Maximum number of playlists to return (default: 20)
        """
        _logger.info(f"Getting user playlists, limit: {limit}")
        return await tools.playlists(limit)

    @mcp.tool(name="playlist-tracks", description="Get tracks from a specific playlist")
    async def playlist_tracks(playlist_id_or_uri: str, limit: int = 50) -> str:
        """
        Args:
            playlist_id_or_uri: Spotify playlist ID or URI
            limit: Maximum number of tracks to return (default: 50)
        """
        _logger.info(f"Getting tracks for playlist: {playlist_id_or_uri}")
        return await tools.playlist_tracks(playlist_id_or_uri, limit)

    @mcp.tool(name="play-playlist", description="Play a specific playlist (with optional shuffle)")
    async def play_playlist(playlist_id_or_uri: str, shuffle: bool = False) -> str:
        """
        Args:
            playlist_id_or_uri: Spotify playlist ID or URI
            shuffle: Whether to play in shuffle mode (default: false)
        """
        _logger.info(f"Playing playlist: {playlist_id_or_uri}, shuffle: {shuffle}")
        return await tools.play_playlist(playlist_id_or_uri, shuffle)

    @mcp.tool(name="search-and-play", description="Search for a track and play the top result")
    async def search_and_play(query: str) -> str:
        """
        Args:
            query: Search query (artist name, track name, etc.)
        """
        _logger.info(f"Searching and playing top result for: {query}")
        return await tools.search_and_play(query)

    @mcp.tool(
        name="find-playlist-and-play",
        description="Find a playlist by name and play it (with optional shuffle)",
    )
    async def find_playlist_and_play(name: str, shuffle: bool = False) -> str:
        """
        Args:
            name: Name of playlist to search for
            shuffle: Whether to play in shuffle mode (default: false)
        """
        _logger.info(f"Finding and playing playlist containing: {name}")
        return await tools.find_playlist_and_play(name, shuffle)

    @mcp.tool(name="debug-config", description="Debug Spotify configuration and connection")
    async def debug_config() -> str:
        _logger.info("Running Spotify configuration debug...")
        return await tools.debug_config()

    return mcp


async def run_stdio_server(mcp_server: Server) -> None:
    """Run an MCP server with stdio transport."""
    async with stdio_server() as (read_stream, write_stream):
        await mcp_server.run(
            read_stream,
            write_stream,
            mcp_server.create_initialization_options(),
        )


async def serve(config: Optional[Config] = None) -> int:
    """
    Build the server from configuration and serve it over stdio.

    Returns:
        Process exit code
    """
    try:
        config = config or load_config()
        mcp = create_mcp_server(build_spotify_tools(config))
    except Exception as e:
        _logger.error(f"Failed to initialize Spotify MCP Server: {e}", exc_info=True)
        return 1

    _logger.info("Spotify MCP Server starting...")
    try:
        await run_stdio_server(mcp._mcp_server)
    except Exception as e:
        _logger.error(f"Spotify MCP Server transport failed: {e}", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    raise SystemExit(asyncio.run(serve()))
