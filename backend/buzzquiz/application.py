from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from buzzquiz.api.router import api_router
from buzzquiz.config import settings
from buzzquiz.engine import GameEngine, engine as default_engine
from buzzquiz.redis_store import (
    RedisSessionStore,
    close_redis,
    get_redis,
    init_redis,
    is_redis_configured,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(engine: GameEngine | None = None) -> FastAPI:
    app = FastAPI(title="BuzzQuiz Backend", version="1.0.0")
    app.state.engine = engine or default_engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.exception_handler(RedisError)
    async def on_storage_error(request: Request, exc: RedisError) -> JSONResponse:
        logger.error(
            "Session store failure on %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return JSONResponse(status_code=503, content={"error": "Storage unavailable"})

    @app.on_event("startup")
    async def on_startup() -> None:
        if engine is not None:
            return
        if await init_redis():
            client = get_redis()
            if client is not None:
                app.state.engine.use_store(RedisSessionStore(client))
        elif is_redis_configured():
            logger.error(
                "Redis unavailable, serving from a process-local store; /api/health reports down"
            )

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await close_redis()

    return app


app = create_app()
