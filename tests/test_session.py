from pathlib import Path
from typing import List, Optional

import pytest

from musux.data import TokenStore
from musux.spotify import SessionContext, SpotifyAuthError


def _make_session(tmp_path: Path, refresher=None) -> SessionContext:
    return SessionContext(TokenStore(str(tmp_path / "tokens.json")), refresher=refresher)


def test_complete_login_stores_tokens(tmp_path: Path) -> None:
    session = _make_session(tmp_path)

    auth = session.complete_login(
        {"access_token": "acc", "refresh_token": "ref", "expires_in": "3600"}
    )

    assert auth.access_token == "acc"
    assert session.access_token == "acc"
    assert session.is_authenticated is True
    assert session.current().refresh_token == "ref"


def test_complete_login_without_access_token_fails(tmp_path: Path) -> None:
    session = _make_session(tmp_path)

    with pytest.raises(SpotifyAuthError):
        session.complete_login({"refresh_token": "ref"})

    assert session.access_token is None


def test_complete_login_with_bad_expires_in_fails(tmp_path: Path) -> None:
    session = _make_session(tmp_path)

    with pytest.raises(SpotifyAuthError, match="expires_in"):
        session.complete_login({"access_token": "acc", "expires_in": "later"})

    assert session.access_token is None


async def test_refresh_with_non_object_payload_fails(tmp_path: Path) -> None:
    async def refresher(refresh_token: Optional[str]) -> dict:
        return "<html>proxy</html>"

    session = _make_session(tmp_path, refresher)
    session.complete_login({"access_token": "acc", "refresh_token": "ref"})

    with pytest.raises(SpotifyAuthError):
        await session.refresh()

    assert session.access_token == "acc"


async def test_refresh_persists_new_access_token(tmp_path: Path) -> None:
    seen: List[Optional[str]] = []

    async def refresher(refresh_token: Optional[str]) -> dict:
        seen.append(refresh_token)
        return {"access_token": "acc-2", "expires_in": 3600}

    session = _make_session(tmp_path, refresher)
    session.complete_login({"access_token": "acc-1", "refresh_token": "ref"})

    token = await session.refresh()

    assert token == "acc-2"
    assert seen == ["ref"]
    assert session.access_token == "acc-2"
    assert session.token_store.get_refresh_token() == "ref"


async def test_refresh_without_refresh_token_fails(tmp_path: Path) -> None:
    async def refresher(refresh_token: Optional[str]) -> dict:
        raise AssertionError("must not be called")

    session = _make_session(tmp_path, refresher)
    session.token_store.store("acc", None, 3600)

    with pytest.raises(SpotifyAuthError):
        await session.refresh()


async def test_refresh_without_refresher_fails(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.complete_login({"access_token": "acc", "refresh_token": "ref"})

    with pytest.raises(SpotifyAuthError):
        await session.refresh()


def test_logout_clears_store_and_notifies_listeners(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.complete_login({"access_token": "acc", "refresh_token": "ref"})
    reasons: List[str] = []
    session.add_logout_listener(reasons.append)

    session.logout()

    assert session.access_token is None
    assert reasons == ["logout"]


def test_expire_reports_reauthentication_reason(tmp_path: Path) -> None:
    session = _make_session(tmp_path)
    session.complete_login({"access_token": "acc", "refresh_token": "ref"})
    reasons: List[str] = []
    remove = session.add_logout_listener(reasons.append)

    session.expire()
    remove()
    session.logout()

    assert reasons == ["reauthentication_required"]
    assert session.is_authenticated is False
