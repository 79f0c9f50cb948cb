"""Public façade for the musux.playback package.

This module exposes the playback synchronization layer: the canonical
state, the device bridge, the transports and the coordinator that ties them
together, plus small rendering helpers for UI consumers. Callers should
import these symbols from this façade instead of the internal modules.
"""

from .bridge import (
    BridgeError,
    BridgeNotReady,
    BridgeOperationError,
    BridgeState,
    DeviceBridge,
    PlaybackEngine,
)
from .coordinator import PlaybackCoordinator
from .state import PlaybackState, PlayerStatus
from .transports import (
    ActivePathTransport,
    BridgeTransport,
    GatewayTransport,
    PlaybackTransport,
)
from .view import (
    album_image_url,
    format_time,
    now_playing,
    progress_fraction,
    render_status_line,
)

__all__ = [
    "PlaybackState",
    "PlayerStatus",
    "PlaybackEngine",
    "DeviceBridge",
    "BridgeState",
    "BridgeError",
    "BridgeNotReady",
    "BridgeOperationError",
    "PlaybackTransport",
    "GatewayTransport",
    "BridgeTransport",
    "ActivePathTransport",
    "PlaybackCoordinator",
    "format_time",
    "progress_fraction",
    "album_image_url",
    "now_playing",
    "render_status_line",
]
