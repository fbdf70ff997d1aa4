from __future__ import annotations

import json
import logging
from typing import Any

from redis.asyncio import Redis
from redis.asyncio import from_url as redis_from_url
from redis.asyncio.lock import Lock
from redis.exceptions import RedisError

from .config import settings
from .game_types import GameSession
from .session_store import SessionStore, load_snapshot
from .snapshot import serialize_session

logger = logging.getLogger(__name__)

_redis: Redis | None = None


def is_redis_configured() -> bool:
    return bool(settings.redis_url)


def get_redis() -> Redis | None:
    return _redis


def _game_key(session_id: str) -> str:
    return f"bq:game:{session_id}"


def _game_lock_key(session_id: str) -> str:
    return f"bq:game:{session_id}:lock"


async def init_redis() -> bool:
    global _redis
    if _redis is not None:
        return True

    if not settings.redis_url:
        logger.info("Redis URL is not configured, using in-memory session store")
        return False

    client = redis_from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await client.ping()
    except (RedisError, OSError):
        logger.exception("Failed to connect to Redis %s", settings.redis_url)
        await client.aclose()
        return False

    _redis = client
    logger.info("Redis session store connected")
    return True


async def close_redis() -> None:
    global _redis
    if _redis is None:
        return
    try:
        await _redis.aclose()
    finally:
        _redis = None


async def ping_redis() -> bool:
    if _redis is None:
        return False
    try:
        await _redis.ping()
        return True
    except RedisError:
        logger.exception("Redis ping failed")
        return False


class RedisSessionStore(SessionStore):
    """Sessions as JSON strings under ``bq:game:<id>`` with ``EX`` expiry.

    ``lock`` takes a Redis lock so read-modify-write cycles stay exclusive
    across every process sharing the same Redis.
    """

    name = "redis"

    def __init__(
        self,
        client: Redis,
        *,
        lock_timeout_seconds: float | None = None,
    ) -> None:
        self._redis = client
        self._lock_timeout = float(
            lock_timeout_seconds
            if lock_timeout_seconds is not None
            else settings.session_lock_timeout_seconds
        )

    async def get(self, session_id: str) -> GameSession | None:
        raw = await self._redis.get(_game_key(session_id))
        if not raw:
            return None
        try:
            state: Any = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Session %s holds non-JSON data", session_id)
            return None
        return load_snapshot(session_id, state)

    async def set(self, session_id: str, session: GameSession, ttl_seconds: int) -> None:
        await self._redis.set(
            _game_key(session_id),
            json.dumps(serialize_session(session), ensure_ascii=False),
            ex=max(1, int(ttl_seconds)),
        )

    async def delete(self, session_id: str) -> None:
        await self._redis.delete(_game_key(session_id))

    def lock(self, session_id: str) -> Lock:
        return self._redis.lock(
            _game_lock_key(session_id),
            timeout=self._lock_timeout,
            blocking_timeout=self._lock_timeout,
        )

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            logger.exception("Redis ping failed")
            return False
