"""
Main execution script for the Spotify MCP server.

Usage:
    python -m spotify_mcp                         # Serve the MCP tools over stdio
    python -m spotify_mcp serve --config=c.json   # Use a JSON configuration file
    python -m spotify_mcp auth                    # Obtain a refresh token via a local callback server
    python -m spotify_mcp auth --manual           # Obtain a refresh token by pasting the redirect URL
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, List

from spotify_mcp.auth import SpotifyTokenClient
from spotify_mcp.auth_helper import DEFAULT_PORT, RefreshTokenHelper, run_manual
from spotify_mcp.config import Config, load_config
from spotify_mcp.errors import ConfigurationError, TokenGrantError
from spotify_mcp.mcp_servers.spotify_mcp_server import serve


def setup_logging(level=logging.INFO, log_file: Optional[str] = None):
    """Setup logging configuration. Console output goes to stderr, stdout carries MCP messages."""
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(file_formatter)
            root_logger.addHandler(file_handler)
        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    # Suppress verbose HTTP client logging
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('spotipy').setLevel(logging.WARNING)


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="spotify-mcp",
        description="Spotify MCP server - Spotify Web API tools over the Model Context Protocol",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                              # Serve tools over stdio
  %(prog)s serve --config=config.json   # Use custom configuration file
  %(prog)s auth                         # Get a refresh token (local callback server)
  %(prog)s auth --manual                # Get a refresh token (paste redirect URL)
        """
    )
    parser.add_argument("--config", type=str, help="Path to JSON configuration file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Serve the Spotify tools over stdio (default)")

    auth_parser = subparsers.add_parser("auth", help="Obtain a Spotify refresh token")
    auth_parser.add_argument("--port", type=int, default=None, help=f"Callback server port (default: {DEFAULT_PORT})")
    auth_parser.add_argument("--manual", action="store_true", help="Paste the redirect URL instead of running a server")

    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "serve"
    return args


async def run_auth(config: Config, port: Optional[int], manual: bool) -> int:
    """Run the refresh token helper."""
    logger = logging.getLogger(__name__)
    if not (config.is_set("client_id") and config.is_set("client_secret")):
        print("Error: SPOTIFY_CLIENT_ID and SPOTIFY_CLIENT_SECRET must be set", file=sys.stderr)
        return 1

    if port:
        redirect_uri = f"http://localhost:{port}"
    else:
        port = config.get_value("auth_port") or DEFAULT_PORT
        redirect_uri = config.get_value("redirect_uri") or f"http://localhost:{port}"

    try:
        timeout = config.get_request_timeout()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    credentials = config.get_credentials(strict=False)
    token_client = SpotifyTokenClient(credentials, timeout=timeout)
    scopes = config.get_value("scopes")

    try:
        if manual:
            refresh_token = await run_manual(token_client, scopes, redirect_uri)
        else:
            helper = RefreshTokenHelper(token_client, scopes, port=port, redirect_uri=redirect_uri)
            refresh_token = await helper.run()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except TokenGrantError as e:
        logger.error(f"Error exchanging code for tokens: {e}")
        return 1
    return 0 if refresh_token else 1


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    log_level = logging.DEBUG if args.verbose else getattr(logging, str(config.get_value("log_level")).upper(), logging.INFO)
    setup_logging(log_level, args.log_file)

    if args.command == "auth":
        return await run_auth(config, args.port, args.manual)
    return await serve(config)


def cli_main(argv: Optional[List[str]] = None):
    """CLI entry point that handles async execution."""
    try:
        exit_code = asyncio.run(main(argv))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        exit_code = 0
    sys.exit(exit_code)


if __name__ == "__main__":
    cli_main()
