from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from buzzquiz.config import settings
from buzzquiz.engine import GameEngine
from buzzquiz.redis_store import ping_redis

from conftest import FakeClock

pytestmark = pytest.mark.anyio


async def _create(client: httpx.AsyncClient) -> tuple[str, str]:
    response = await client.post("/api/game")
    assert response.status_code == 200
    body = response.json()
    return body["gameId"], body["hostToken"]


async def _join(client: httpx.AsyncClient, game_id: str, name: str) -> str:
    response = await client.post(f"/api/game/{game_id}/join", json={"playerName": name})
    assert response.status_code == 200
    return response.json()["playerId"]


async def _control(
    client: httpx.AsyncClient, game_id: str, host_token: str, action: str, **payload: object
) -> httpx.Response:
    return await client.post(
        f"/api/game/{game_id}/control",
        json={"hostToken": host_token, "action": action, "payload": payload},
    )


async def test_health_reports_store(client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "redis_url", "")
    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "store": "memory", "storeStatus": "up", "redis": "disabled"}


async def test_health_is_down_when_configured_redis_fell_back_to_memory(
    client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(settings, "redis_url", "redis://unreachable:6379/0")
    assert await ping_redis() is False

    response = await client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"ok": False, "store": "memory", "storeStatus": "down", "redis": "down"}


async def test_full_round_over_http(client: httpx.AsyncClient) -> None:
    game_id, host_token = await _create(client)
    ann = await _join(client, game_id, "Ann")
    ben = await _join(client, game_id, "Ben")

    assert (await _control(client, game_id, host_token, "startGame")).json() == {"success": True}
    assert (await _control(client, game_id, host_token, "selectQuestion", categoryIdx=0, questionIdx=0)).status_code == 200
    assert (await _control(client, game_id, host_token, "openBuzzer")).status_code == 200

    first = await client.post(f"/api/game/{game_id}/buzz", json={"playerId": ben})
    assert first.json() == {"success": True, "position": 1}
    second = await client.post(f"/api/game/{game_id}/buzz", json={"playerId": ann, "reactionTimeMs": 120})
    assert second.json() == {"success": True, "position": 2}

    player_view = (await client.get(f"/api/game/{game_id}/poll", params={"playerId": ann})).json()
    assert player_view["myBuzzed"] is True
    assert [entry["playerName"] for entry in player_view["buzzes"]] == ["Ben", "Ann"]
    assert "answer" not in player_view["currentQuestion"]

    host_view = (await client.get(f"/api/game/{game_id}/poll", params={"hostToken": host_token})).json()
    assert host_view["currentQuestion"]["answer"] == "Paris"

    assert (await _control(client, game_id, host_token, "awardPoints", playerId=ben)).status_code == 200
    state = (await client.get(f"/api/game/{game_id}")).json()
    assert state["currentQuestion"] is None
    assert state["board"][0][0] == {"value": 200, "used": True}
    assert {p["name"]: p["score"] for p in state["players"]} == {"Ann": 0, "Ben": 200}


async def test_create_with_custom_questions(client: httpx.AsyncClient) -> None:
    response = await client.post(
        "/api/game",
        json={"customQuestions": {"categories": [{"name": "Solo", "questions": [{"question": "Q", "answer": "A"}]}]}},
    )
    assert response.status_code == 200
    game_id = response.json()["gameId"]
    state = (await client.get(f"/api/game/{game_id}")).json()
    assert state["categories"] == ["Solo"]
    assert state["board"] == [[{"value": 200, "used": False}]]


async def test_create_with_malformed_questions_is_422(client: httpx.AsyncClient) -> None:
    response = await client.post("/api/game", json={"customQuestions": {"categories": [{"name": "X"}]}})
    assert response.status_code == 422


async def test_rejections_map_to_status_codes(client: httpx.AsyncClient) -> None:
    game_id, host_token = await _create(client)
    await _join(client, game_id, "Ann")

    duplicate = await client.post(f"/api/game/{game_id}/join", json={"playerName": "ANN"})
    assert duplicate.status_code == 409
    assert duplicate.json() == {"error": "Name already taken", "code": "duplicate_name"}

    blank = await client.post(f"/api/game/{game_id}/join", json={"playerName": "  "})
    assert blank.status_code == 400

    missing = await client.get("/api/game/ZZZZZZ")
    assert missing.status_code == 404
    assert missing.json()["code"] == "game_not_found"

    bad_token = await _control(client, game_id, "forged", "startGame")
    assert bad_token.status_code == 403

    no_token = await client.post(f"/api/game/{game_id}/control", json={"action": "startGame"})
    assert no_token.status_code == 401

    no_action = await client.post(f"/api/game/{game_id}/control", json={"hostToken": host_token})
    assert no_action.status_code == 400
    assert no_action.json()["code"] == "missing_action"

    unknown = await _control(client, game_id, host_token, "explode")
    assert unknown.status_code == 400
    assert unknown.json()["code"] == "unknown_action"

    closed = await client.post(f"/api/game/{game_id}/buzz", json={"playerId": "ghost"})
    assert closed.status_code == 404

    no_player = await client.post(f"/api/game/{game_id}/buzz", json={})
    assert no_player.status_code == 400

    host_poll = await client.get(f"/api/game/{game_id}/poll", params={"hostToken": "forged"})
    assert host_poll.status_code == 403


async def test_mediator_flow(client: httpx.AsyncClient) -> None:
    game_id, host_token = await _create(client)
    joined = await client.post(f"/api/game/{game_id}/mediator")
    assert joined.status_code == 200
    mediator_token = joined.json()["mediatorToken"]

    again = await client.post(f"/api/game/{game_id}/mediator")
    assert again.status_code == 409

    assert (await client.get(f"/api/game/{game_id}/mediator")).status_code == 401
    assert (await client.get(f"/api/game/{game_id}/mediator", params={"mediatorToken": "x"})).status_code == 403

    await _control(client, game_id, host_token, "selectQuestion", categoryIdx=0, questionIdx=1)
    hidden = (await client.get(f"/api/game/{game_id}/mediator", params={"mediatorToken": mediator_token})).json()
    assert hidden["hasMediator"] is True
    assert "answer" not in hidden["currentQuestion"]

    await _control(client, game_id, host_token, "revealAnswer")
    shown = (await client.get(f"/api/game/{game_id}/mediator", params={"mediatorToken": mediator_token})).json()
    assert shown["currentQuestion"]["answer"] == "Tokyo"


async def test_poll_locks_expired_buzzer(client: httpx.AsyncClient, clock: FakeClock) -> None:
    game_id, host_token = await _create(client)
    await _control(client, game_id, host_token, "selectQuestion", categoryIdx=0, questionIdx=0)
    await _control(client, game_id, host_token, "openBuzzer")

    clock.advance(5000)
    state = (await client.get(f"/api/game/{game_id}/poll")).json()
    assert state["buzzerState"] == "locked"


async def test_end_game_then_poll_is_404(client: httpx.AsyncClient) -> None:
    game_id, host_token = await _create(client)
    ended = await _control(client, game_id, host_token, "endGame")
    assert ended.json() == {"success": True, "ended": True}
    assert (await client.get(f"/api/game/{game_id}/poll")).status_code == 404


async def test_storage_failure_is_503(client: httpx.AsyncClient, engine: GameEngine) -> None:
    engine.store.get = AsyncMock(side_effect=RedisConnectionError("down"))  # type: ignore[method-assign]
    response = await client.get("/api/game/ABC123")
    assert response.status_code == 503
    assert response.json() == {"error": "Storage unavailable"}


async def test_missing_credentials_share_the_error_body_shape(client: httpx.AsyncClient) -> None:
    game_id, _ = await _create(client)

    no_host = await client.post(f"/api/game/{game_id}/control", json={"action": "startGame"})
    assert no_host.status_code == 401
    assert no_host.json() == {"error": "Host token is required", "code": "host_token_required"}

    no_player = await client.post(f"/api/game/{game_id}/buzz", json={})
    assert no_player.status_code == 400
    assert no_player.json() == {"error": "Player ID is required", "code": "invalid_payload"}

    no_mediator = await client.get(f"/api/game/{game_id}/mediator")
    assert no_mediator.status_code == 401
    assert no_mediator.json() == {"error": "Mediator token required", "code": "mediator_token_required"}
