import base64
from typing import Dict, Optional
from urllib.parse import urlencode

import requests

from musux import config
from musux.core import log_step, log_warning

from .errors import SpotifyAuthError, SpotifyConfigError


def _require_credentials(*, need_redirect: bool = False) -> None:
    missing = []
    if not config.SPOTIFY_CLIENT_ID:
        missing.append("SPOTIFY_CLIENT_ID")
    if not config.SPOTIFY_CLIENT_SECRET:
        missing.append("SPOTIFY_CLIENT_SECRET")
    if need_redirect and not config.SPOTIFY_REDIRECT_URI:
        missing.append("SPOTIFY_REDIRECT_URI")
    if missing:
        raise SpotifyConfigError(
            f"Spotify credentials not configured: {', '.join(missing)}"
        )


def build_spotify_auth_url(state: Optional[str] = None) -> str:
    """
    Build the authorization-code URL the browser is sent to.

    Raises SpotifyConfigError instead of producing a URL Spotify would reject.
    """
    _require_credentials(need_redirect=True)

    params = {
        "client_id": config.SPOTIFY_CLIENT_ID,
        "response_type": "code",
        "redirect_uri": config.SPOTIFY_REDIRECT_URI,
        "scope": " ".join(config.SCOPES),
    }
    if state:
        params["state"] = state
    return f"{config.SPOTIFY_AUTH_URL}?{urlencode(params)}"


def _basic_auth_header() -> Dict[str, str]:
    raw = f"{config.SPOTIFY_CLIENT_ID}:{config.SPOTIFY_CLIENT_SECRET}".encode("utf-8")
    return {
        "Authorization": f"Basic {base64.b64encode(raw).decode('ascii')}",
        "Content-Type": "application/x-www-form-urlencoded",
    }


def _post_token_request(data: Dict[str, str], action: str) -> Dict:
    _require_credentials()
    try:
        r = requests.post(
            config.SPOTIFY_TOKEN_URL,
            data=data,
            headers=_basic_auth_header(),
            timeout=15,
        )
    except requests.RequestException as e:
        raise SpotifyAuthError(f"Failed to {action}: {e}") from e

    if not r.ok:
        try:
            error = r.json().get("error", r.reason)
        except ValueError:
            error = r.reason
        log_warning(f"Spotify token endpoint refused to {action} ({r.status_code}).")
        raise SpotifyAuthError(f"Failed to {action}: {error}")
    return r.json()


def exchange_code_for_token(code: str, redirect_uri: Optional[str] = None) -> Dict:
    """
    Exchange an authorization code for access and refresh tokens.

    Returns Spotify's payload untouched (access_token, refresh_token,
    expires_in, scope, token_type).
    """
    log_step("Exchanging Spotify authorization code for tokens...")
    return _post_token_request(
        {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri or config.SPOTIFY_REDIRECT_URI,
        },
        "exchange code",
    )


def refresh_spotify_token(refresh_token: str) -> Dict:
    """Exchange a refresh token for a new access token."""
    log_step("Refreshing Spotify access token...")
    return _post_token_request(
        {"grant_type": "refresh_token", "refresh_token": refresh_token},
        "refresh token",
    )
