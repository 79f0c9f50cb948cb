import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from musux.core import AuthSession, log_error, log_info
from musux.data import TokenStore

from .errors import SpotifyAuthError

logger = logging.getLogger(__name__)

Refresher = Callable[[Optional[str]], Awaitable[Dict[str, Any]]]
LogoutListener = Callable[[str], None]


def _expires_in(payload: Dict[str, Any]) -> Optional[int]:
    value = payload.get("expires_in")
    if value in (None, ""):
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise SpotifyAuthError(f"Invalid expires_in in token response: {value!r}") from e


class SessionContext:
    """
    The one place the player reads authentication state from.

    Every consumer (gateway, coordinator, CLI) receives the same instance;
    nobody reads the token file directly. Logging out, or losing the
    session after a failed refresh, notifies the registered listeners so the
    UI can fall back to its logged-out view.
    """

    def __init__(self, token_store: TokenStore, refresher: Optional[Refresher] = None) -> None:
        self.token_store = token_store
        self.refresher = refresher
        self._logout_listeners: List[LogoutListener] = []

    @property
    def access_token(self) -> Optional[str]:
        return self.token_store.get_access_token()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token_store.get_access_token() and self.token_store.get_refresh_token())

    def current(self) -> Optional[AuthSession]:
        return self.token_store.load_session()

    def complete_login(self, payload: Dict[str, Any]) -> AuthSession:
        """Persist a token payload from the relay (code exchange or callback redirect)."""
        access = payload.get("access_token")
        if not access:
            raise SpotifyAuthError("Token payload has no access_token.")
        session = self.token_store.store(
            access,
            payload.get("refresh_token") or None,
            _expires_in(payload),
        )
        log_info("Spotify session stored.")
        return session

    async def refresh(self) -> str:
        """
        Exchange the refresh token for a new access token and persist it.

        Raises SpotifyAuthError when no refresher is wired, no refresh token
        is stored, or the relay refuses.
        """
        if self.refresher is None:
            raise SpotifyAuthError("No token refresher configured.")
        refresh_token = self.token_store.get_refresh_token()
        if not refresh_token:
            raise SpotifyAuthError("No refresh token stored.")

        payload = await self.refresher(refresh_token)
        access = payload.get("access_token") if isinstance(payload, dict) else None
        if not access:
            raise SpotifyAuthError("Refresh response has no access_token.")
        self.token_store.store(access, payload.get("refresh_token") or None, _expires_in(payload))
        logger.debug("Access token refreshed")
        return access

    def add_logout_listener(self, listener: LogoutListener) -> Callable[[], None]:
        self._logout_listeners.append(listener)

        def _remove() -> None:
            if listener in self._logout_listeners:
                self._logout_listeners.remove(listener)

        return _remove

    def logout(self, reason: str = "logout") -> None:
        self.token_store.clear()
        for listener in list(self._logout_listeners):
            listener(reason)

    def expire(self) -> None:
        """Irrecoverable refresh failure: drop every token and force a new login."""
        log_error("Spotify session expired; please log in again.")
        self.logout("reauthentication_required")
