import time
from typing import Dict, Optional

from musux.config import TOKEN_STORE_FILE
from musux.core import AuthSession, log_warning, read_json, remove_file, write_json

ACCESS_TOKEN_KEY = "spotify_token"
REFRESH_TOKEN_KEY = "spotify_refresh_token"
EXPIRY_KEY = "spotify_token_expiry"


def _now_ms() -> int:
    return int(time.time() * 1000)


class TokenStore:
    """
    Durable key/value holder for the Spotify access token, refresh token and
    expiry instant (epoch ms).

    The three entries live in one JSON file so they are always replaced
    together. Expiry is advisory: nothing is evicted automatically, callers
    decide what to do with an expired token.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path or TOKEN_STORE_FILE

    def _load(self) -> Dict[str, object]:
        def _on_error(e: Exception) -> None:
            log_warning("Token store file is corrupted; treating it as empty.")

        data = read_json(self.path, default={}, on_error=_on_error)
        if not isinstance(data, dict):
            log_warning("Token store has invalid structure; treating it as empty.")
            return {}
        return data

    def get_access_token(self) -> Optional[str]:
        return self._load().get(ACCESS_TOKEN_KEY) or None

    def get_refresh_token(self) -> Optional[str]:
        return self._load().get(REFRESH_TOKEN_KEY) or None

    def get_expiry(self) -> Optional[int]:
        value = self._load().get(EXPIRY_KEY)
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    def load_session(self) -> Optional[AuthSession]:
        """Return the stored tokens as one AuthSession, or None without an access token."""
        data = self._load()
        access = data.get(ACCESS_TOKEN_KEY)
        if not access:
            return None
        expiry = data.get(EXPIRY_KEY)
        return AuthSession(
            access_token=str(access),
            refresh_token=data.get(REFRESH_TOKEN_KEY) or None,
            expires_at_ms=int(expiry) if isinstance(expiry, (int, float)) else None,
        )

    def store(
        self,
        access_token: str,
        refresh_token: Optional[str],
        expires_in: Optional[int],
    ) -> AuthSession:
        """
        Replace the stored session.

        Spotify's refresh grant usually omits refresh_token; in that case the
        previous refresh token is kept.
        """
        if refresh_token is None:
            refresh_token = self.get_refresh_token()

        expires_at_ms = None
        if expires_in is not None:
            expires_at_ms = _now_ms() + int(expires_in) * 1000

        write_json(
            self.path,
            {
                ACCESS_TOKEN_KEY: access_token,
                REFRESH_TOKEN_KEY: refresh_token,
                EXPIRY_KEY: expires_at_ms,
            },
        )
        return AuthSession(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at_ms=expires_at_ms,
        )

    def clear(self) -> None:
        remove_file(self.path)

    def is_expired(self, now_ms: Optional[int] = None, leeway_ms: int = 60_000) -> bool:
        """Advisory check; an unknown expiry counts as not expired."""
        expiry = self.get_expiry()
        if expiry is None:
            return False
        now = _now_ms() if now_ms is None else now_ms
        return now >= expiry - leeway_ms
