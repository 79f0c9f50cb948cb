"""Error taxonomy for Spotify calls.

- SpotifyConfigError        : client id/secret/redirect URI missing
- SpotifyAuthError          : the token endpoint refused an exchange/refresh
- SpotifyTokenMissing       : no access token stored, nothing was sent
- SpotifyAuthorizationError : the Web API rejected the access token (401)
- ReauthenticationRequired  : refresh path exhausted, tokens were cleared
- PlaybackTransportError    : network failure, no HTTP response at all
- SpotifyServiceError       : Spotify answered with an application error
"""

from typing import Optional


class SpotifyError(RuntimeError):
    """Base class for every Spotify-related failure."""


class SpotifyConfigError(SpotifyError):
    pass


class SpotifyAuthError(SpotifyError):
    pass


class SpotifyTokenMissing(SpotifyError):
    pass


class SpotifyAuthorizationError(SpotifyError):
    pass


class ReauthenticationRequired(SpotifyAuthorizationError):
    pass


class PlaybackTransportError(SpotifyError):
    pass


class SpotifyServiceError(SpotifyError):
    def __init__(
        self,
        status_code: int,
        reason: str = "",
        retry_after: Optional[int] = None,
    ) -> None:
        super().__init__(f"Spotify API error {status_code}: {reason}".rstrip(": "))
        self.status_code = status_code
        self.reason = reason
        self.retry_after = retry_after

    @property
    def no_active_device(self) -> bool:
        return self.status_code == 404 or "NO_ACTIVE_DEVICE" in self.reason
