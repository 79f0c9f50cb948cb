from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class Image(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    height: Optional[int] = None
    width: Optional[int] = None


class ArtistRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str


class AlbumRef(BaseModel):
    """
    Album reference carried by a track.

    - images : ordered by resolution, as returned by Spotify (largest first)
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    images: List[Image] = []


class Track(BaseModel):
    """
    A playable track as returned by the Spotify Web API.

    Tracks are never mutated locally; a new poll produces a new instance.
    Unknown keys from the API payload (popularity, external_urls, ...) are
    ignored.
    """

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = None
    name: str
    artists: List[ArtistRef] = []
    album: AlbumRef
    duration_ms: int
    uri: str

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Track":
        return cls.model_validate(payload)

    @property
    def artist_names(self) -> str:
        return ", ".join(a.name for a in self.artists)


@dataclass(frozen=True)
class AuthSession:
    """Access/refresh token pair and advisory expiry (epoch milliseconds)."""

    access_token: str
    refresh_token: Optional[str]
    expires_at_ms: Optional[int] = None


@dataclass(frozen=True)
class PlaybackSnapshot:
    """
    Remote playback state reported by GET /me/player.

    track can be None while something is active but not a track (ads,
    some podcast episodes).
    """

    track: Optional[Track]
    is_playing: bool
    progress_ms: int
    volume_percent: Optional[int] = None
    device_id: Optional[str] = None
    device_name: Optional[str] = None

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "PlaybackSnapshot":
        item = payload.get("item")
        device = payload.get("device") or {}
        track = None
        if isinstance(item, dict) and item.get("type", "track") == "track":
            track = Track.from_api(item)
        return cls(
            track=track,
            is_playing=bool(payload.get("is_playing", False)),
            progress_ms=int(payload.get("progress_ms") or 0),
            volume_percent=device.get("volume_percent"),
            device_id=device.get("id"),
            device_name=device.get("name"),
        )


class NoActiveSession:
    """Explicit "nothing is active on any device" result (not an error)."""

    _instance: Optional["NoActiveSession"] = None

    def __new__(cls) -> "NoActiveSession":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_ACTIVE_SESSION"


NO_ACTIVE_SESSION = NoActiveSession()
