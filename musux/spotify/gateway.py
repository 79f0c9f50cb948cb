import logging
from typing import Any, Dict, Optional, Union

import httpx

from musux import config
from musux.core import NO_ACTIVE_SESSION, NoActiveSession, PlaybackSnapshot, Track

from .errors import (
    PlaybackTransportError,
    ReauthenticationRequired,
    SpotifyError,
    SpotifyServiceError,
    SpotifyTokenMissing,
)
from .session import SessionContext

logger = logging.getLogger(__name__)

RemoteState = Union[PlaybackSnapshot, NoActiveSession]


def _error_reason(r: httpx.Response) -> str:
    try:
        body = r.json()
    except ValueError:
        return r.reason_phrase or ""
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("reason") or error.get("message") or ""
    if isinstance(error, str):
        return error
    return r.reason_phrase or ""


def _retry_after(r: httpx.Response) -> Optional[int]:
    value = r.headers.get("Retry-After")
    try:
        return int(value) if value else None
    except ValueError:
        return None


class RemotePlaybackGateway:
    """
    Spotify Web API playback endpoints (/me/player/*).

    Every call reads the access token from the session right before it is
    sent. A 401 triggers exactly one refresh and one retry; if the refresh
    fails or the retried call is rejected again, the session is expired and
    ReauthenticationRequired is raised.
    """

    def __init__(
        self,
        session: SessionContext,
        client: Optional[httpx.AsyncClient] = None,
        api_base: Optional[str] = None,
    ) -> None:
        self.session = session
        self.api_base = (api_base or config.SPOTIFY_API_BASE).rstrip("/")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _send(
        self,
        method: str,
        path: str,
        token: str,
        params: Optional[Dict[str, Any]],
        json_body: Optional[Dict[str, Any]],
    ) -> httpx.Response:
        try:
            return await self._get_client().request(
                method,
                f"{self.api_base}{path}",
                params=params,
                json=json_body,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TransportError as e:
            raise PlaybackTransportError(f"{method} {path} failed: {e}") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        token = self.session.access_token
        if not token:
            raise SpotifyTokenMissing("No Spotify access token; log in first.")

        r = await self._send(method, path, token, params, json_body)

        if r.status_code == 401:
            logger.info("401 from Spotify on %s %s, refreshing token", method, path)
            try:
                token = await self.session.refresh()
            except SpotifyError as e:
                self.session.expire()
                raise ReauthenticationRequired(f"Token refresh failed: {e}") from e

            r = await self._send(method, path, token, params, json_body)
            if r.status_code == 401:
                self.session.expire()
                raise ReauthenticationRequired("Spotify rejected the refreshed token.")

        if r.status_code >= 400:
            raise SpotifyServiceError(r.status_code, _error_reason(r), _retry_after(r))
        return r

    async def get_state(self) -> RemoteState:
        """
        Fetch the current playback snapshot.

        Returns NO_ACTIVE_SESSION when Spotify reports nothing active (204, or
        no item while not playing) so callers can tell it apart from a failure.
        """
        r = await self._request("GET", "/me/player")
        if r.status_code == 204 or not r.content:
            return NO_ACTIVE_SESSION

        data = r.json()
        if not isinstance(data, dict):
            return NO_ACTIVE_SESSION
        if data.get("item") is None and not data.get("is_playing"):
            return NO_ACTIVE_SESSION
        return PlaybackSnapshot.from_api(data)

    async def play(self, uri: Optional[str] = None, device_id: Optional[str] = None) -> None:
        """Start playing a URI, or resume the current context when uri is None."""
        params = {"device_id": device_id} if device_id else None
        body = {"uris": [uri]} if uri else None
        await self._request("PUT", "/me/player/play", params=params, json_body=body)

    async def pause(self) -> None:
        await self._request("PUT", "/me/player/pause")

    async def seek(self, position_ms: int) -> None:
        await self._request(
            "PUT", "/me/player/seek", params={"position_ms": max(0, int(position_ms))}
        )

    async def set_volume(self, percent: int) -> None:
        volume = max(0, min(100, int(percent)))
        await self._request("PUT", "/me/player/volume", params={"volume_percent": volume})

    async def skip_next(self) -> None:
        await self._request("POST", "/me/player/next")

    async def skip_previous(self) -> None:
        await self._request("POST", "/me/player/previous")

    async def get_track(self, track_id: str) -> Track:
        """Look up one track so a bare URI or id can be handed to the player."""
        track_id = track_id.rsplit(":", 1)[-1].rsplit("/", 1)[-1].split("?", 1)[0]
        r = await self._request("GET", f"/tracks/{track_id}")
        return Track.from_api(r.json())
