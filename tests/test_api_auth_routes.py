from urllib.parse import parse_qs, urlparse

import pytest
from fastapi.testclient import TestClient

from api_main import app
from musux import config
from musux.spotify import SpotifyAuthError

client = TestClient(app)

ROUTES = "musux.api.auth.routes"


@pytest.fixture
def credentials(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_ID", "client-id")
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_SECRET", "client-secret")
    monkeypatch.setattr(
        config, "SPOTIFY_REDIRECT_URI", "http://localhost:5000/api/spotify/callback"
    )


def _token_payload(**overrides) -> dict:
    payload = {
        "access_token": "acc",
        "refresh_token": "ref",
        "expires_in": 3600,
        "token_type": "Bearer",
    }
    payload.update(overrides)
    return payload


def test_health() -> None:
    r = client.get("/api/health")

    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_auth_url_contains_client_id_and_scopes(credentials: None) -> None:
    r = client.get("/api/spotify/auth/url")

    assert r.status_code == 200
    url = urlparse(r.json()["authUrl"])
    params = parse_qs(url.query)
    assert f"{url.scheme}://{url.netloc}{url.path}" == config.SPOTIFY_AUTH_URL
    assert params["client_id"] == ["client-id"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["http://localhost:5000/api/spotify/callback"]
    scopes = params["scope"][0].split(" ")
    for scope in ("user-read-playback-state", "user-modify-playback-state", "streaming"):
        assert scope in scopes


def test_auth_url_without_credentials_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_ID", "")
    monkeypatch.setattr(config, "SPOTIFY_CLIENT_SECRET", "")

    r = client.get("/api/spotify/auth/url")

    assert r.status_code == 500
    assert r.json() == {"message": "Failed to get authorization URL"}


def test_token_requires_code_and_redirect_uri() -> None:
    r = client.post("/api/spotify/token", json={"code": "abc"})

    assert r.status_code == 400
    assert r.json() == {"message": "Code and redirectUri are required"}


def test_token_without_body_returns_400() -> None:
    r = client.post("/api/spotify/token")

    assert r.status_code == 400


def test_token_exchange_returns_spotify_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = []

    def fake_exchange(code, redirect_uri=None):
        calls.append((code, redirect_uri))
        return _token_payload()

    monkeypatch.setattr(f"{ROUTES}.exchange_code_for_token", fake_exchange)

    r = client.post(
        "/api/spotify/token",
        json={"code": "abc", "redirectUri": "http://localhost:5000/api/spotify/callback"},
    )

    assert r.status_code == 200
    assert r.json()["access_token"] == "acc"
    assert calls == [("abc", "http://localhost:5000/api/spotify/callback")]


def test_token_exchange_failure_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_exchange(code, redirect_uri=None):
        raise SpotifyAuthError("invalid_grant")

    monkeypatch.setattr(f"{ROUTES}.exchange_code_for_token", fake_exchange)

    r = client.post("/api/spotify/token", json={"code": "abc", "redirectUri": "http://x"})

    assert r.status_code == 500
    assert r.json() == {"message": "Failed to exchange code for token"}


def test_refresh_requires_a_token() -> None:
    fresh_client = TestClient(app)

    r = fresh_client.post("/api/spotify/refresh", json={})

    assert r.status_code == 400
    assert r.json() == {"message": "Refresh token is required"}


def test_refresh_with_body_token(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []

    def fake_refresh(refresh_token):
        seen.append(refresh_token)
        return _token_payload(access_token="acc-2", refresh_token=None)

    monkeypatch.setattr(f"{ROUTES}.refresh_spotify_token", fake_refresh)

    r = client.post("/api/spotify/refresh", json={"refreshToken": "ref-body"})

    assert r.status_code == 200
    assert r.json()["access_token"] == "acc-2"
    assert seen == ["ref-body"]


def test_refresh_falls_back_to_session_token(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = []
    monkeypatch.setattr(
        f"{ROUTES}.exchange_code_for_token",
        lambda code, redirect_uri=None: _token_payload(refresh_token="ref-session"),
    )

    def fake_refresh(refresh_token):
        seen.append(refresh_token)
        return _token_payload(access_token="acc-2", refresh_token=None)

    monkeypatch.setattr(f"{ROUTES}.refresh_spotify_token", fake_refresh)

    session_client = TestClient(app)
    session_client.post("/api/spotify/token", json={"code": "abc", "redirectUri": "http://x"})
    r = session_client.post("/api/spotify/refresh")

    assert r.status_code == 200
    assert r.json()["access_token"] == "acc-2"
    assert seen == ["ref-session"]


def test_refresh_failure_returns_500(monkeypatch: pytest.MonkeyPatch) -> None:
    def fake_refresh(refresh_token):
        raise SpotifyAuthError("invalid_grant")

    monkeypatch.setattr(f"{ROUTES}.refresh_spotify_token", fake_refresh)

    r = client.post("/api/spotify/refresh", json={"refreshToken": "ref"})

    assert r.status_code == 500
    assert r.json() == {"message": "Failed to refresh token"}


def test_callback_redirects_with_tokens(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        f"{ROUTES}.exchange_code_for_token",
        lambda code, redirect_uri=None: _token_payload(),
    )

    r = client.get("/api/spotify/callback?code=abc", follow_redirects=False)

    assert r.status_code == 307
    location = urlparse(r.headers["location"])
    assert location.path == "/"
    assert parse_qs(location.query) == {
        "access_token": ["acc"],
        "refresh_token": ["ref"],
        "expires_in": ["3600"],
    }


def test_callback_error_redirects_to_error_page() -> None:
    r = client.get("/api/spotify/callback?error=access_denied", follow_redirects=False)

    assert r.status_code == 307
    location = urlparse(r.headers["location"])
    assert location.path == "/error"
    assert "access_denied" in parse_qs(location.query)["message"][0]


def test_callback_exchange_failure_redirects_to_error_page(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def fake_exchange(code, redirect_uri=None):
        raise SpotifyAuthError("invalid_grant")

    monkeypatch.setattr(f"{ROUTES}.exchange_code_for_token", fake_exchange)

    r = client.get("/api/spotify/callback?code=abc", follow_redirects=False)

    assert r.status_code == 307
    assert r.headers["location"].startswith("/error?")


def test_error_page_escapes_message_and_links_home() -> None:
    r = client.get("/error", params={"message": "<b>denied</b>"})

    assert r.status_code == 200
    assert "&lt;b&gt;denied&lt;/b&gt;" in r.text
    assert 'href="/"' in r.text


def test_index_after_callback_mentions_login_command() -> None:
    r = client.get("/?access_token=acc&refresh_token=ref&expires_in=3600")

    assert r.status_code == 200
    assert "musux login" in r.text
