"""Client for the local OAuth relay backend (/api/spotify/*).

The player never holds the client secret; every token operation goes
through the backend, which adds the Basic-auth credentials.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import httpx

from musux import config

from .errors import SpotifyAuthError

logger = logging.getLogger(__name__)


class RelayClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = (base_url or config.BACKEND_URL).rstrip("/")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _call(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        client = self._get_client()
        try:
            r = await client.request(method, f"{self.base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise SpotifyAuthError(f"Relay backend unreachable: {e}") from e

        if r.status_code >= 400:
            try:
                message = r.json().get("message") or r.json().get("detail")
            except (ValueError, AttributeError):
                message = r.text
            raise SpotifyAuthError(f"Relay {path} failed ({r.status_code}): {message}")
        try:
            data = r.json()
        except ValueError as e:
            raise SpotifyAuthError(f"Relay {path} returned an unreadable response") from e
        if not isinstance(data, dict):
            raise SpotifyAuthError(f"Relay {path} returned an unexpected response")
        return data

    async def get_auth_url(self) -> str:
        data = await self._call("GET", "/api/spotify/auth/url")
        return data["authUrl"]

    async def exchange_code(self, code: str, redirect_uri: str) -> Dict[str, Any]:
        return await self._call(
            "POST",
            "/api/spotify/token",
            json={"code": code, "redirectUri": redirect_uri},
        )

    async def refresh(self, refresh_token: Optional[str]) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if refresh_token:
            body["refreshToken"] = refresh_token
        logger.debug("Requesting token refresh through relay")
        return await self._call("POST", "/api/spotify/refresh", json=body)


def parse_callback_redirect(url: str) -> Dict[str, str]:
    """
    Extract what the browser landed on after authorization.

    Handles both the relay callback redirect
      /?access_token=...&refresh_token=...&expires_in=3600
    and a raw Spotify redirect
      /callback?code=...
    Raises SpotifyAuthError for an /error?message=... landing page.
    """
    parsed = urlparse(url.strip())
    qs = {k: v[0] for k, v in parse_qs(parsed.query).items() if v}

    if parsed.path.rstrip("/").endswith("error") or "error" in qs:
        raise SpotifyAuthError(qs.get("message") or qs.get("error") or "authorization failed")
    if "access_token" in qs:
        return {
            "access_token": qs["access_token"],
            "refresh_token": qs.get("refresh_token", ""),
            "expires_in": qs.get("expires_in", ""),
        }
    if "code" in qs:
        return {"code": qs["code"]}
    raise SpotifyAuthError("No code or token found in the redirect URL.")
