import base64

import pytest
import requests

from musux import config
from musux.spotify import (
    SpotifyAuthError,
    SpotifyConfigError,
    build_spotify_auth_url,
    exchange_code_for_token,
    refresh_spotify_token,
)


class _FakeResponse:
    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "Bad Request" if status_code >= 400 else "OK"
        self._payload = payload

    def json(self) -> dict:
        return self._payload


@pytest.fixture(autouse=True)
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_ID", "client-id")
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(
        config, "SPOTIFY_REDIRECT_URI", "http://localhost:5000/api/spotify/callback"
    )


def test_exchange_code_posts_form_with_basic_auth(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        captured.update(url=url, data=data, headers=headers)
        return _FakeResponse(200, {"access_token": "acc", "refresh_token": "ref", "expires_in": 3600})

    monkeypatch.setattr("musux.spotify.auth.requests.post", fake_post)

    payload = exchange_code_for_token("the-code", "http://x/cb")

    assert payload["access_token"] == "acc"
    assert captured["url"] == config.SPOTIFY_TOKEN_URL
    assert captured["data"] == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "redirect_uri": "http://x/cb",
    }
    expected = base64.b64encode(b"client-id:client-secret").decode("ascii")
    assert captured["headers"]["Authorization"] == f"Basic {expected}"


def test_refresh_sends_refresh_grant(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_post(url, data=None, headers=None, timeout=None):
        captured.update(data=data)
        return _FakeResponse(200, {"access_token": "acc-2", "expires_in": 3600})

    monkeypatch.setattr("musux.spotify.auth.requests.post", fake_post)

    assert refresh_spotify_token("ref")["access_token"] == "acc-2"
    assert captured["data"] == {"grant_type": "refresh_token", "refresh_token": "ref"}


def test_token_endpoint_refusal_raises_auth_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        "musux.spotify.auth.requests.post",
        lambda *args, **kwargs: _FakeResponse(400, {"error": "invalid_grant"}),
    )

    with pytest.raises(SpotifyAuthError, match="invalid_grant"):
        refresh_spotify_token("stale")


def test_network_failure_raises_auth_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_post(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr("musux.spotify.auth.requests.post", fake_post)

    with pytest.raises(SpotifyAuthError):
        exchange_code_for_token("the-code")


def test_missing_credentials_fail_before_any_request(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_SECRET", "")

    def fake_post(*args, **kwargs):
        raise AssertionError("must not be called")

    monkeypatch.setattr("musux.spotify.auth.requests.post", fake_post)

    with pytest.raises(SpotifyConfigError, match="SPOTIFY_CLIENT_SECRET"):
        refresh_spotify_token("ref")
    with pytest.raises(SpotifyConfigError):
        build_spotify_auth_url()


def test_auth_url_carries_state_when_given() -> None:
    assert "state=abc123" in build_spotify_auth_url(state="abc123")
