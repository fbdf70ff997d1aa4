from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from .game_types import GameSession
from .snapshot import deserialize_session, serialize_session

logger = logging.getLogger(__name__)


class SessionStore(ABC):
    """Keyed persistence for game sessions with a retention window.

    Records are replaced wholesale on ``set``; readers never observe a
    half-written session. ``lock`` serialises read-modify-write cycles on a
    single session id.
    """

    name = "abstract"

    @abstractmethod
    async def get(self, session_id: str) -> GameSession | None: ...

    @abstractmethod
    async def set(self, session_id: str, session: GameSession, ttl_seconds: int) -> None: ...

    @abstractmethod
    async def delete(self, session_id: str) -> None: ...

    @abstractmethod
    def lock(self, session_id: str) -> Any:
        """Return an async context manager guarding one session's record."""

    async def exists(self, session_id: str) -> bool:
        return await self.get(session_id) is not None

    async def ping(self) -> bool:
        return True


def load_snapshot(session_id: str, state: Any) -> GameSession | None:
    try:
        return deserialize_session(state)
    except (TypeError, ValueError):
        logger.exception("Dropping malformed session snapshot %s", session_id)
        return None


class MemorySessionStore(SessionStore):
    """Process-local store. Holds serialised snapshots, never live objects."""

    name = "memory"

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._records: dict[str, tuple[dict[str, Any], float]] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def _live_record(self, session_id: str) -> dict[str, Any] | None:
        entry = self._records.get(session_id)
        if entry is None:
            return None
        state, expires_at = entry
        if self._clock() >= expires_at:
            self._records.pop(session_id, None)
            return None
        return state

    async def get(self, session_id: str) -> GameSession | None:
        state = self._live_record(session_id)
        if state is None:
            return None
        return load_snapshot(session_id, state)

    def _sweep_expired(self) -> None:
        now = self._clock()
        for session_id, (_, expires_at) in list(self._records.items()):
            if now >= expires_at:
                del self._records[session_id]

    async def set(self, session_id: str, session: GameSession, ttl_seconds: int) -> None:
        self._sweep_expired()
        self._records[session_id] = (
            serialize_session(session),
            self._clock() + max(1, int(ttl_seconds)),
        )

    async def delete(self, session_id: str) -> None:
        self._records.pop(session_id, None)

    @asynccontextmanager
    async def lock(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(session_id, asyncio.Lock())
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            # Forget the lock once nobody holds or waits for it.
            remaining = self._lock_users[session_id] - 1
            if remaining:
                self._lock_users[session_id] = remaining
            else:
                del self._lock_users[session_id]
                del self._locks[session_id]

    def __len__(self) -> int:
        return sum(1 for session_id in list(self._records) if self._live_record(session_id))
