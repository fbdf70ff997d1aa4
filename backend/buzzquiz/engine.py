from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .control_actions import ControlAction, ControlResult, apply_control
from .errors import Rejection, RejectReason, reject
from .game_constants import BUZZER_WINDOW_MS, GAME_TTL_SECONDS
from .game_types import Buzz, Category, GameSession, Player
from .game_utils import (
    generate_secret,
    normalize_player_name,
    now_ms,
    random_game_code,
    random_player_id,
    sanitize_game_id,
    sanitize_player_name,
    tokens_match,
)
from .question_bank import QuestionBankError, build_board, default_board
from .session_store import MemorySessionStore, SessionStore
from .views import build_host_view, build_mediator_view, build_public_view

logger = logging.getLogger(__name__)

GAME_CODE_ATTEMPTS = 8


@dataclass(frozen=True)
class CreatedGame:
    game_id: str
    host_token: str

    def to_payload(self) -> dict[str, object]:
        return {"gameId": self.game_id, "hostToken": self.host_token}


@dataclass(frozen=True)
class JoinedPlayer:
    player_id: str
    player_name: str

    def to_payload(self) -> dict[str, object]:
        return {"playerId": self.player_id, "playerName": self.player_name}


@dataclass(frozen=True)
class JoinedMediator:
    mediator_token: str

    def to_payload(self) -> dict[str, object]:
        return {"mediatorToken": self.mediator_token}


@dataclass(frozen=True)
class BuzzAccepted:
    position: int

    def to_payload(self) -> dict[str, object]:
        return {"success": True, "position": self.position}


class GameEngine:
    """Applies one state transition per call to one stored game session.

    Every mutating operation runs load -> validate -> mutate -> store inside
    the store's per-session lock, so concurrent callers on the same game
    never lose each other's writes. Nothing is cached between calls.
    """

    def __init__(
        self,
        store: SessionStore | None = None,
        *,
        clock: Callable[[], int] = now_ms,
        ttl_seconds: int = GAME_TTL_SECONDS,
        buzzer_window_ms: int = BUZZER_WINDOW_MS,
        board_factory: Callable[[], list[Category]] = default_board,
    ) -> None:
        self.store: SessionStore = store if store is not None else MemorySessionStore()
        self._clock = clock
        self._ttl_seconds = ttl_seconds
        self._buzzer_window_ms = buzzer_window_ms
        self._board_factory = board_factory

    def use_store(self, store: SessionStore) -> None:
        logger.info("Game engine now backed by %s store", store.name)
        self.store = store

    def _log_game_event(self, event: str, level: int = logging.INFO, **fields: object) -> None:
        logger.log(
            level,
            "game.%s %s",
            event,
            json.dumps(fields, ensure_ascii=False, separators=(",", ":")),
        )

    async def _save(self, session: GameSession) -> None:
        await self.store.set(session.id, session, self._ttl_seconds)

    def _buzzer_expired(self, session: GameSession, now: int) -> bool:
        if session.buzzer_state != "open" or session.buzzer_opened_at is None:
            return False
        return now - session.buzzer_opened_at >= self._buzzer_window_ms

    async def create_session(self, custom_questions: Any = None) -> CreatedGame | Rejection:
        try:
            board = (
                build_board(custom_questions)
                if custom_questions is not None
                else self._board_factory()
            )
        except QuestionBankError as exc:
            self._log_game_event("create-rejected", logging.WARNING, reason=str(exc))
            return reject(RejectReason.INVALID_QUESTIONS, str(exc))

        for _ in range(GAME_CODE_ATTEMPTS):
            game_id = random_game_code()
            async with self.store.lock(game_id):
                if await self.store.exists(game_id):
                    continue
                session = GameSession(
                    id=game_id,
                    host_token=generate_secret(),
                    board=board,
                    created_at=self._clock(),
                )
                await self._save(session)
            self._log_game_event(
                "created",
                gameId=game_id,
                categories=len(board),
                custom=custom_questions is not None,
            )
            return CreatedGame(game_id=game_id, host_token=session.host_token)

        raise RuntimeError("Could not allocate a free game code")

    async def join_as_player(self, game_id: str, player_name: Any) -> JoinedPlayer | Rejection:
        name = sanitize_player_name(player_name)
        if not name:
            return reject(RejectReason.NAME_REQUIRED)

        game_id = sanitize_game_id(game_id)
        async with self.store.lock(game_id):
            session = await self.store.get(game_id)
            if session is None:
                return reject(RejectReason.GAME_NOT_FOUND)
            if session.started:
                return reject(RejectReason.ALREADY_STARTED)

            normalized = normalize_player_name(name)
            if any(normalize_player_name(p.name) == normalized for p in session.players.values()):
                return reject(RejectReason.DUPLICATE_NAME)

            player_id = random_player_id()
            while player_id in session.players:
                player_id = random_player_id()
            session.players[player_id] = Player(name=name)
            await self._save(session)

        self._log_game_event("player-joined", gameId=game_id, playerId=player_id)
        return JoinedPlayer(player_id=player_id, player_name=name)

    async def join_as_mediator(self, game_id: str) -> JoinedMediator | Rejection:
        game_id = sanitize_game_id(game_id)
        async with self.store.lock(game_id):
            session = await self.store.get(game_id)
            if session is None:
                return reject(RejectReason.GAME_NOT_FOUND)
            if session.mediator_token is not None:
                return reject(RejectReason.MEDIATOR_ALREADY_CONNECTED)
            session.mediator_token = generate_secret()
            await self._save(session)

        self._log_game_event("mediator-joined", gameId=game_id)
        return JoinedMediator(mediator_token=session.mediator_token)

    async def buzz(
        self,
        game_id: str,
        player_id: str,
        *,
        timestamp: int | None = None,
        reaction_time_ms: int | None = None,
    ) -> BuzzAccepted | Rejection:
        """Record a buzz and return the buzzer's 1-based rank.

        ``timestamp`` is the server's receipt time; callers only pass it to
        pin the clock. ``reaction_time_ms`` is kept as client-reported
        metadata and never affects ordering.
        """
        game_id = sanitize_game_id(game_id)
        async with self.store.lock(game_id):
            session = await self.store.get(game_id)
            if session is None:
                return reject(RejectReason.GAME_NOT_FOUND)
            if player_id not in session.players:
                return reject(RejectReason.PLAYER_NOT_FOUND)

            received_at = timestamp if timestamp is not None else self._clock()
            if session.buzzer_state != "open" or self._buzzer_expired(session, self._clock()):
                return reject(RejectReason.BUZZER_NOT_OPEN)
            if player_id in session.eliminated_from_round:
                return reject(RejectReason.ALREADY_ELIMINATED)
            if session.has_buzzed(player_id):
                return reject(RejectReason.ALREADY_BUZZED)

            session.buzzes.append(
                Buzz(
                    player_id=player_id,
                    timestamp=received_at,
                    reaction_time_ms=reaction_time_ms,
                )
            )
            # list.sort is stable: equal timestamps keep arrival order.
            session.buzzes.sort(key=lambda entry: entry.timestamp)
            await self._save(session)

        position = next(
            index
            for index, entry in enumerate(session.buzzes, start=1)
            if entry.player_id == player_id
        )
        self._log_game_event("buzz", gameId=game_id, playerId=player_id, position=position)
        return BuzzAccepted(position=position)

    async def control(
        self,
        game_id: str,
        host_token: str | None,
        action: Any,
        payload: Any = None,
    ) -> ControlResult | Rejection:
        game_id = sanitize_game_id(game_id)
        async with self.store.lock(game_id):
            session = await self.store.get(game_id)
            if session is None:
                return reject(RejectReason.GAME_NOT_FOUND)
            if not tokens_match(session.host_token, host_token):
                return reject(RejectReason.INVALID_HOST_TOKEN)
            if not action:
                return reject(RejectReason.MISSING_ACTION)
            control_action = ControlAction.parse(action)
            if control_action is None:
                return reject(RejectReason.UNKNOWN_ACTION, f"Unknown action: {action}")
            if payload is None:
                payload = {}
            if not isinstance(payload, dict):
                return reject(RejectReason.INVALID_PAYLOAD)

            outcome = apply_control(session, control_action, payload, self._clock())
            if isinstance(outcome, Rejection):
                self._log_game_event(
                    "control-rejected",
                    gameId=game_id,
                    action=control_action.value,
                    code=outcome.code,
                )
                return outcome

            if outcome.ended:
                await self.store.delete(game_id)
            else:
                await self._save(session)

        self._log_game_event("control", gameId=game_id, action=control_action.value)
        return outcome

    async def _refresh(self, game_id: str) -> GameSession | None:
        async with self.store.lock(game_id):
            session = await self.store.get(game_id)
            if session is None:
                return None
            if self._buzzer_expired(session, self._clock()):
                session.buzzer_state = "locked"
                await self._save(session)
                self._log_game_event("buzzer-timeout", gameId=game_id)
            return session

    async def check_buzzer_timeout(self, game_id: str) -> None:
        """Lock an open buzzer whose window has elapsed.

        There is no background timer; pollers call this before reading state.
        Repeated calls after the first transition change nothing.
        """
        await self._refresh(sanitize_game_id(game_id))

    async def get_public_game_state(
        self,
        game_id: str,
        player_id: str | None = None,
    ) -> dict[str, Any] | Rejection:
        session = await self._refresh(sanitize_game_id(game_id))
        if session is None:
            return reject(RejectReason.GAME_NOT_FOUND)
        return build_public_view(session, player_id)

    async def get_host_game_state(
        self,
        game_id: str,
        host_token: str | None,
    ) -> dict[str, Any] | Rejection:
        session = await self._refresh(sanitize_game_id(game_id))
        if session is None:
            return reject(RejectReason.GAME_NOT_FOUND)
        view = build_host_view(session, host_token)
        if view is None:
            return reject(RejectReason.INVALID_HOST_TOKEN)
        return view

    async def get_mediator_game_state(
        self,
        game_id: str,
        mediator_token: str | None,
    ) -> dict[str, Any] | Rejection:
        session = await self._refresh(sanitize_game_id(game_id))
        if session is None:
            return reject(RejectReason.GAME_NOT_FOUND)
        view = build_mediator_view(session, mediator_token)
        if view is None:
            return reject(RejectReason.INVALID_MEDIATOR_TOKEN)
        return view


engine = GameEngine()
