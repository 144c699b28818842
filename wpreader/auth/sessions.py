"""Session token and authorization code stores.

Both are thin wrappers over ``JsonCollectionStore`` that fix the file name,
the collection key and the record type.
"""

import time
from collections.abc import Callable
from pathlib import Path

from wpreader.auth.persistence import JsonCollectionStore
from wpreader.auth.storage import SessionToken, StoredAuthCode
from wpreader.core.constants import (
    AUTH_CODES_COLLECTION,
    AUTH_CODES_FILE,
    TOKENS_COLLECTION,
    TOKENS_FILE,
)


class SessionTokenStore:
    """Persisted mapping of session id -> SessionToken."""

    def __init__(
        self,
        storage_dir: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: JsonCollectionStore[SessionToken] = JsonCollectionStore(
            Path(storage_dir) / TOKENS_FILE,
            SessionToken,
            TOKENS_COLLECTION,
            clock=clock,
        )

    @property
    def path(self) -> Path:
        return self._store.path

    async def put(self, session: SessionToken) -> None:
        await self._store.put(session.id, session)

    async def get(self, session_id: str) -> SessionToken | None:
        return await self._store.get(session_id)

    async def delete(self, session_id: str) -> bool:
        return await self._store.delete(session_id)

    async def latest_valid(self) -> SessionToken | None:
        """Return the non-expired session that expires last.

        Ties on ``expires_at`` go to the greatest id so the answer is stable.
        """
        sessions = await self._store.values()
        if not sessions:
            return None
        return max(sessions, key=lambda s: (s.expires_at, s.id))

    async def sweep(self) -> int:
        return await self._store.sweep()


class AuthorizationCodeStore:
    """Persisted mapping of authorization code -> StoredAuthCode."""

    def __init__(
        self,
        storage_dir: str | Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store: JsonCollectionStore[StoredAuthCode] = JsonCollectionStore(
            Path(storage_dir) / AUTH_CODES_FILE,
            StoredAuthCode,
            AUTH_CODES_COLLECTION,
            clock=clock,
        )

    @property
    def path(self) -> Path:
        return self._store.path

    async def put(self, auth_code: StoredAuthCode) -> None:
        await self._store.put(auth_code.code, auth_code)

    async def get(self, code: str) -> StoredAuthCode | None:
        return await self._store.get(code)

    async def delete(self, code: str) -> bool:
        return await self._store.delete(code)

    async def sweep(self) -> int:
        return await self._store.sweep()
