from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from musux.config import DEFAULT_VOLUME
from musux.core import Track


class PlayerStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass
class PlaybackState:
    """
    Canonical "what is playing now", as this client perceives it.

    Only the PlaybackCoordinator writes to it. Consumers get copies through
    PlaybackCoordinator.snapshot() or subscription callbacks.
    """

    track: Optional[Track] = None
    is_playing: bool = False
    progress_ms: int = 0
    duration_ms: int = 0
    volume: int = DEFAULT_VOLUME
    status: PlayerStatus = PlayerStatus.IDLE

    def copy(self) -> "PlaybackState":
        return replace(self)

    def settled_status(self) -> PlayerStatus:
        """Status implied by the other fields once nothing is pending."""
        if self.is_playing:
            return PlayerStatus.PLAYING
        if self.track is not None:
            return PlayerStatus.PAUSED
        return PlayerStatus.IDLE
