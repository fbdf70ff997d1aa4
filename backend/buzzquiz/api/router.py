from __future__ import annotations

from fastapi import APIRouter

from buzzquiz.api.games import router as games_router
from buzzquiz.api.system import router as system_router

api_router = APIRouter()
api_router.include_router(system_router)
api_router.include_router(games_router)
