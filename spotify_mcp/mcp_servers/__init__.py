"""
MCP servers exposing Spotify tools.
"""
