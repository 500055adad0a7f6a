"""Bearer token persistence and the signed-in session."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from glasscloset.api.client import AnalysisClient

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = "accessToken"


@dataclass(slots=True, frozen=True)
class User:
    """Signed-in user; the backend does not expose a profile endpoint, so ``id`` stays unknown after login."""

    email: str
    username: str
    id: str | None = None

    @classmethod
    def from_email(cls, email: str) -> "User":
        username = email.split("@", 1)[0] or "user"
        return cls(email=email, username=username)


class TokenStore:
    """Keeps the bearer token in a small JSON file under a well-known key."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._token = self._read()

    def _read(self) -> str | None:
        if not self._path.exists():
            return None
        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, exc)
            return None
        token = payload.get(ACCESS_TOKEN_KEY) if isinstance(payload, dict) else None
        return token if isinstance(token, str) and token else None

    def get_token(self) -> str | None:
        """Return the stored token, or ``None`` when signed out."""

        return self._token

    async def set_token(self, token: str) -> None:
        self._token = token
        body = json.dumps({ACCESS_TOKEN_KEY: token})
        await asyncio.to_thread(self._write_file, self._path, body)

    async def clear(self) -> None:
        self._token = None
        await asyncio.to_thread(self._delete_file, self._path)

    @staticmethod
    def _write_file(path: Path, body: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")

    @staticmethod
    def _delete_file(path: Path) -> None:
        path.unlink(missing_ok=True)


class AuthSession:
    """Login, signup and logout on top of the API client and token store."""

    def __init__(self, client: AnalysisClient, store: TokenStore) -> None:
        self._client = client
        self._store = store
        self.current_user: User | None = None

    @property
    def is_authenticated(self) -> bool:
        return self._store.get_token() is not None

    async def login(self, email: str, password: str) -> User:
        """Sign in and persist the returned token."""

        token = await self._client.login(email, password)
        await self._store.set_token(token)
        self.current_user = User.from_email(email)
        logger.info("Signed in as %s", self.current_user.username)
        return self.current_user

    async def signup(self, email: str, password: str) -> str:
        """Create an account; the caller logs in separately afterwards."""

        user_id = await self._client.signup(email, password)
        logger.info("Created account %s", user_id)
        return user_id

    async def logout(self) -> None:
        await self._store.clear()
        self.current_user = None
        logger.info("Signed out.")
