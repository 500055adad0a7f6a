"""Tests for token persistence and the signed-in session."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable

import httpx
import pytest

from glasscloset.api.auth import ACCESS_TOKEN_KEY, AuthSession, TokenStore, User
from glasscloset.api.client import AnalysisClient
from glasscloset.config.settings import Settings

ClientFactory = Callable[..., AnalysisClient]


@pytest.mark.asyncio
async def test_token_store_persists_under_access_token_key(tmp_path: Path) -> None:
    path = tmp_path / "state" / "session.json"
    store = TokenStore(path)
    assert store.get_token() is None

    await store.set_token("abc")

    assert json.loads(path.read_text(encoding="utf-8")) == {ACCESS_TOKEN_KEY: "abc"}
    assert TokenStore(path).get_token() == "abc"

    await store.clear()
    await store.clear()

    assert store.get_token() is None
    assert not path.exists()


@pytest.mark.parametrize("body", ["{not json", "[]", '{"accessToken": ""}', '{"accessToken": 5}'])
def test_token_store_ignores_unusable_files(tmp_path: Path, body: str) -> None:
    path = tmp_path / "session.json"
    path.write_text(body, encoding="utf-8")

    assert TokenStore(path).get_token() is None


def test_user_from_email() -> None:
    user = User.from_email("ada@example.com")

    assert user.username == "ada"
    assert user.email == "ada@example.com"
    assert user.id is None
    assert User.from_email("ada@example.com") == user


@pytest.mark.asyncio
async def test_login_stores_token_and_logout_clears_it(
    tmp_path: Path,
    settings: Settings,
) -> None:
    store = TokenStore(tmp_path / "session.json")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/login":
            return httpx.Response(200, json={"message": "ok", "access_token": "fresh-token"})
        return httpx.Response(200, json={"clothing_items": []})

    async with AnalysisClient(
        settings,
        token_provider=store.get_token,
        transport=httpx.MockTransport(handler),
    ) as client:
        session = AuthSession(client, store)
        assert not session.is_authenticated

        user = await session.login("ada@example.com", "pw")
        assert session.is_authenticated
        assert user.username == "ada"
        assert await client.fetch_items() == []

        await session.logout()

    assert not session.is_authenticated
    assert session.current_user is None


@pytest.mark.asyncio
async def test_signup_does_not_sign_in(tmp_path: Path, make_client: ClientFactory) -> None:
    store = TokenStore(tmp_path / "session.json")
    client = make_client(lambda request: httpx.Response(200, json={"message": "ok", "user_id": "u-1"}), token=None)

    async with client:
        user_id = await AuthSession(client, store).signup("ada@example.com", "pw")

    assert user_id == "u-1"
    assert store.get_token() is None
