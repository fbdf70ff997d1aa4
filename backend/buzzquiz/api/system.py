from __future__ import annotations

from fastapi import APIRouter, Depends

from buzzquiz.api.games import get_engine
from buzzquiz.engine import GameEngine
from buzzquiz.redis_store import RedisSessionStore, is_redis_configured, ping_redis

router = APIRouter(tags=["system"])


@router.get("/api/health")
async def health(engine: GameEngine = Depends(get_engine)) -> dict[str, object]:
    store_ok = await engine.store.ping()
    if is_redis_configured():
        redis_ok = await ping_redis()
        redis_status = "up" if redis_ok else "down"
        # A configured Redis is the shared source of truth; a local fallback is not healthy.
        if engine.store.name != RedisSessionStore.name:
            store_ok = False
    else:
        redis_status = "disabled"
    return {
        "ok": store_ok,
        "store": engine.store.name,
        "storeStatus": "up" if store_ok else "down",
        "redis": redis_status,
    }
