from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from buzzquiz.engine import GameEngine
from buzzquiz.errors import ErrorKind, Rejection, RejectReason, reject
from buzzquiz.schemas.games import (
    BuzzRequest,
    ControlRequest,
    CreateGameRequest,
    JoinGameRequest,
)

router = APIRouter(prefix="/api/game", tags=["game"])

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNAUTHORIZED: 403,
    ErrorKind.VALIDATION: 400,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNKNOWN_ACTION: 400,
}


def get_engine(request: Request) -> GameEngine:
    return request.app.state.engine


def _token_required(code: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": message, "code": code})


def _respond(result: Any) -> Any:
    if isinstance(result, Rejection):
        return JSONResponse(status_code=STATUS_BY_KIND[result.kind], content=result.to_payload())
    if isinstance(result, dict):
        return result
    return result.to_payload()


@router.post("")
async def create_game(
    payload: CreateGameRequest | None = None,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    custom_questions = (
        payload.customQuestions.model_dump(exclude_none=True)
        if payload is not None and payload.customQuestions is not None
        else None
    )
    return _respond(await engine.create_session(custom_questions))


@router.get("/{game_id}")
async def game_state(game_id: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return _respond(await engine.get_public_game_state(game_id))


@router.get("/{game_id}/poll")
async def poll_game(
    game_id: str,
    hostToken: str | None = Query(default=None, max_length=256),
    playerId: str | None = Query(default=None, max_length=64),
    engine: GameEngine = Depends(get_engine),
) -> Any:
    if hostToken:
        return _respond(await engine.get_host_game_state(game_id, hostToken))
    return _respond(await engine.get_public_game_state(game_id, playerId))


@router.post("/{game_id}/join")
async def join_game(
    game_id: str,
    payload: JoinGameRequest,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    return _respond(await engine.join_as_player(game_id, payload.playerName))


@router.post("/{game_id}/buzz")
async def buzz(
    game_id: str,
    payload: BuzzRequest,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    player_id = payload.playerId.strip()
    if not player_id:
        return _respond(reject(RejectReason.INVALID_PAYLOAD, "Player ID is required"))
    return _respond(
        await engine.buzz(game_id, player_id, reaction_time_ms=payload.reactionTimeMs)
    )


@router.post("/{game_id}/control")
async def control_game(
    game_id: str,
    payload: ControlRequest,
    engine: GameEngine = Depends(get_engine),
) -> Any:
    if not payload.hostToken:
        return _token_required("host_token_required", "Host token is required")
    return _respond(
        await engine.control(game_id, payload.hostToken, payload.action, payload.payload)
    )


@router.post("/{game_id}/mediator")
async def join_as_mediator(game_id: str, engine: GameEngine = Depends(get_engine)) -> Any:
    return _respond(await engine.join_as_mediator(game_id))


@router.get("/{game_id}/mediator")
async def mediator_state(
    game_id: str,
    mediatorToken: str | None = Query(default=None, max_length=256),
    engine: GameEngine = Depends(get_engine),
) -> Any:
    if not mediatorToken:
        return _token_required("mediator_token_required", "Mediator token required")
    return _respond(await engine.get_mediator_game_state(game_id, mediatorToken))
