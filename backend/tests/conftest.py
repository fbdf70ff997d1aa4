from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import pytest

from buzzquiz.application import create_app
from buzzquiz.engine import CreatedGame, GameEngine, JoinedPlayer
from buzzquiz.question_bank import build_board
from buzzquiz.session_store import MemorySessionStore

SMALL_QUESTION_SET = {
    "categories": [
        {
            "name": "Capitals",
            "questions": [
                {"value": 200, "question": "Capital of France", "answer": "Paris"},
                {"value": 400, "question": "Capital of Japan", "answer": "Tokyo"},
            ],
        }
    ]
}


class FakeClock:
    def __init__(self, start: int = 1_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def engine(store: MemorySessionStore, clock: FakeClock) -> GameEngine:
    return GameEngine(
        store,
        clock=clock,
        ttl_seconds=3600,
        buzzer_window_ms=5000,
        board_factory=lambda: build_board(SMALL_QUESTION_SET),
    )


@pytest.fixture
async def game(engine: GameEngine) -> CreatedGame:
    created = await engine.create_session()
    assert isinstance(created, CreatedGame)
    return created


@pytest.fixture
async def players(engine: GameEngine, game: CreatedGame) -> dict[str, str]:
    ids: dict[str, str] = {}
    for name in ("Ann", "Ben"):
        joined = await engine.join_as_player(game.game_id, name)
        assert isinstance(joined, JoinedPlayer)
        ids[name] = joined.player_id
    return ids


@pytest.fixture
async def client(engine: GameEngine) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=create_app(engine))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
