"""
Data types for the Spotify MCP server.
"""

from enum import Enum
from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, Field


class GrantMode(str, Enum):
    """OAuth2 grant flow used to obtain an access token."""
    REFRESH_TOKEN = "refresh_token"
    CLIENT_CREDENTIALS = "client_credentials"


class SpotifyCredentials(BaseModel):
    """Application credentials, fixed for the lifetime of the process."""
    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., description="Spotify application client id")
    client_secret: str = Field(..., description="Spotify application client secret")
    redirect_uri: str = Field(..., description="Redirect URI registered for the application")
    refresh_token: Optional[str] = Field(
        default=None,
        description="Long-lived refresh token; without it only catalog access is available",
    )

    @property
    def has_refresh_token(self) -> bool:
        return bool(self.refresh_token)


class AccessToken(BaseModel):
    """Current bearer token and the epoch time after which it must not be used."""
    value: str = Field(default="", description="Bearer token value")
    expires_at: float = Field(default=0.0, description="Epoch seconds, already reduced by the safety margin")


class TokenResponse(BaseModel):
    """Body of a successful answer from the accounts token endpoint."""
    access_token: str
    token_type: str = "Bearer"
    expires_in: int = Field(..., description="Token lifetime in seconds")
    scope: Optional[str] = None
    refresh_token: Optional[str] = None


class TrackSummary(BaseModel):
    """Flat view of a track as returned by search."""
    id: Optional[str]
    name: str
    artist: str
    album: str
    uri: str
    duration_ms: Optional[int] = None
    popularity: Optional[int] = None
    preview_url: Optional[str] = None

    @classmethod
    def from_api(cls, track: Dict[str, Any]) -> "TrackSummary":
        return cls(
            id=track.get("id"),
            name=track.get("name", ""),
            artist=join_artists(track),
            album=(track.get("album") or {}).get("name", ""),
            uri=track.get("uri", ""),
            duration_ms=track.get("duration_ms"),
            popularity=track.get("popularity"),
            preview_url=track.get("preview_url"),
        )


class NowPlaying(BaseModel):
    """Currently playing item. Episodes carry no artist or album."""
    id: Optional[str]
    name: str
    type: str = Field(default="track", description="'track' or 'episode'")
    artist: Optional[str] = None
    album: Optional[str] = None
    uri: str
    progress_ms: Optional[int] = None
    duration_ms: Optional[int] = None
    is_playing: bool = False

    @classmethod
    def from_api(cls, playback: Dict[str, Any]) -> "NowPlaying":
        item = playback["item"]
        common = dict(
            id=item.get("id"),
            name=item.get("name", ""),
            uri=item.get("uri", ""),
            progress_ms=playback.get("progress_ms"),
            duration_ms=item.get("duration_ms"),
            is_playing=bool(playback.get("is_playing")),
        )
        if "artists" in item and "album" in item:
            return cls(artist=join_artists(item), album=item["album"].get("name", ""), **common)
        return cls(type="episode", **common)

    def to_display(self) -> Dict[str, Any]:
        if self.type == "episode":
            return self.model_dump(exclude={"artist", "album"})
        return self.model_dump(exclude={"type"})


class DeviceSummary(BaseModel):
    """A Spotify Connect device."""
    id: Optional[str]
    name: str
    type: str
    is_active: bool = False
    volume_percent: Optional[int] = None


class PlaylistSummary(BaseModel):
    """One entry of the user's playlist listing."""
    id: str
    name: str
    description: Optional[str] = None
    tracks_total: int = 0
    uri: str
    public: Optional[bool] = None
    owner: Optional[str] = None
    image: Optional[str] = None

    @classmethod
    def from_api(cls, playlist: Dict[str, Any]) -> "PlaylistSummary":
        owner = playlist.get("owner") or {}
        images = playlist.get("images") or []
        # the API renamed "tracks" to "items" for playlist listings
        tracks = playlist.get("tracks") or playlist.get("items") or {}
        return cls(
            id=playlist["id"],
            name=playlist.get("name", ""),
            description=playlist.get("description"),
            tracks_total=tracks.get("total", 0),
            uri=playlist.get("uri", ""),
            public=playlist.get("public"),
            owner=owner.get("display_name") or owner.get("id"),
            image=images[0].get("url") if images else None,
        )


class PlaylistTrack(BaseModel):
    """One row of a playlist's track listing."""
    position: int
    id: Optional[str] = None
    name: str
    artist: Optional[str] = None
    album: Optional[str] = None
    duration_ms: Optional[int] = None
    added_at: Optional[str] = None
    uri: Optional[str] = None

    @classmethod
    def from_api(cls, position: int, item: Dict[str, Any]) -> "PlaylistTrack":
        track = item.get("track") or item.get("item")
        if not track:
            return cls(position=position, name="Unknown track", added_at=item.get("added_at"))
        return cls(
            position=position,
            id=track.get("id"),
            name=track.get("name", ""),
            artist=join_artists(track) if "artists" in track else "Unknown",
            album=track["album"].get("name", "") if "album" in track else "Unknown",
            duration_ms=track.get("duration_ms"),
            added_at=item.get("added_at"),
            uri=track.get("uri"),
        )


class PlaylistTracks(BaseModel):
    """A page of a playlist's tracks together with the playlist name."""
    playlist_name: str
    total_tracks: int = 0
    tracks: List[PlaylistTrack] = Field(default_factory=list)


def join_artists(item: Dict[str, Any]) -> str:
    """Comma separated artist names of a track object."""
    return ", ".join(artist.get("name", "") for artist in item.get("artists") or [])
