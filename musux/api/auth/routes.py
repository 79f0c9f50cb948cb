from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse

from musux.core import log_error, log_info, log_success
from musux.spotify import (
    SpotifyConfigError,
    SpotifyError,
    build_spotify_auth_url,
    exchange_code_for_token,
    refresh_spotify_token,
)

from .schemas import AuthUrlResponse, RefreshRequest, TokenRequest

router = APIRouter()

SESSION_REFRESH_TOKEN_KEY = "spotify_refresh_token"
SESSION_ACCESS_TOKEN_KEY = "spotify_token"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@router.get("/auth/url", response_model=AuthUrlResponse)
def get_auth_url():
    """
    Return the Spotify authorization URL the client should open.
    """
    try:
        return {"authUrl": build_spotify_auth_url()}
    except SpotifyConfigError as e:
        log_error(f"Cannot build authorization URL: {e}")
        return _error(500, "Failed to get authorization URL")


@router.post("/token")
def exchange_token(request: Request, body: Optional[TokenRequest] = None):
    """
    Exchange an authorization code for tokens.

    The refresh token is also kept in the signed session cookie so later
    refresh calls may omit it.
    """
    if body is None or not body.code or not body.redirectUri:
        return _error(400, "Code and redirectUri are required")

    try:
        token_info = exchange_code_for_token(body.code, body.redirectUri)
    except SpotifyError as e:
        log_error(f"Error exchanging code for token: {e}")
        return _error(500, "Failed to exchange code for token")

    if token_info.get("refresh_token"):
        request.session[SESSION_REFRESH_TOKEN_KEY] = token_info["refresh_token"]
    log_success("Spotify authorization code exchanged.")
    return token_info


@router.post("/refresh")
def refresh_token(request: Request, body: Optional[RefreshRequest] = None):
    """
    Refresh an access token.

    Uses the refresh token from the body, falling back to the one stored in
    the session by a previous /token call.
    """
    refresh = body.refreshToken if body is not None else None
    from_session = False
    if not refresh:
        refresh = request.session.get(SESSION_REFRESH_TOKEN_KEY)
        from_session = bool(refresh)

    if not refresh:
        return _error(400, "Refresh token is required")

    try:
        token_info = refresh_spotify_token(refresh)
    except SpotifyError as e:
        log_error(f"Error refreshing token: {e}")
        return _error(500, "Failed to refresh token")

    if from_session:
        request.session[SESSION_ACCESS_TOKEN_KEY] = token_info.get("access_token")
        if token_info.get("refresh_token"):
            request.session[SESSION_REFRESH_TOKEN_KEY] = token_info["refresh_token"]
    log_info("Spotify access token refreshed.")
    return token_info


@router.get("/callback")
def auth_callback(
    code: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
):
    """
    Spotify redirect target.

    Exchanges the code server side and hands the tokens to the client through
    the query string of `/`, or sends it to `/error` with a message.
    """
    if error:
        return RedirectResponse(
            "/error?" + urlencode({"message": f"Spotify authorization failed: {error}"})
        )
    if not code:
        return RedirectResponse(
            "/error?" + urlencode({"message": "Missing 'code' parameter."})
        )

    try:
        token_info = exchange_code_for_token(code)
    except SpotifyError as e:
        log_error(f"Error exchanging code from callback: {e}")
        return RedirectResponse(
            "/error?" + urlencode({"message": "Failed to exchange code for token"})
        )

    params = {
        "access_token": token_info.get("access_token", ""),
        "refresh_token": token_info.get("refresh_token", ""),
        "expires_in": token_info.get("expires_in", ""),
    }
    return RedirectResponse("/?" + urlencode(params))
