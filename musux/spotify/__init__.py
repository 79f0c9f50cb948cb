"""Public façade for the musux.spotify package.

This module exposes the Spotify integration: the server-side OAuth relay
helpers, the client-side relay client and session context, the playback
gateway, and the error taxonomy. Callers should import these symbols from
this façade instead of the internal modules.
"""

from .auth import (
    build_spotify_auth_url,
    exchange_code_for_token,
    refresh_spotify_token,
)
from .errors import (
    PlaybackTransportError,
    ReauthenticationRequired,
    SpotifyAuthError,
    SpotifyAuthorizationError,
    SpotifyConfigError,
    SpotifyError,
    SpotifyServiceError,
    SpotifyTokenMissing,
)
from .gateway import RemotePlaybackGateway, RemoteState
from .relay import RelayClient, parse_callback_redirect
from .session import SessionContext

__all__ = [
    "build_spotify_auth_url",
    "exchange_code_for_token",
    "refresh_spotify_token",
    "SpotifyError",
    "SpotifyConfigError",
    "SpotifyAuthError",
    "SpotifyTokenMissing",
    "SpotifyAuthorizationError",
    "ReauthenticationRequired",
    "PlaybackTransportError",
    "SpotifyServiceError",
    "RemotePlaybackGateway",
    "RemoteState",
    "RelayClient",
    "parse_callback_redirect",
    "SessionContext",
]
