"""Host control actions as pure transitions over one loaded session.

Each handler validates first and mutates second, so a returned ``Rejection``
always leaves the session exactly as it was loaded. Persisting (or deleting,
for ``endGame``) is the engine's job.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import Rejection, RejectReason, reject
from .game_types import GameSession, QuestionRef


class ControlAction(str, Enum):
    START_GAME = "startGame"
    SELECT_QUESTION = "selectQuestion"
    REVEAL_ANSWER = "revealAnswer"
    OPEN_BUZZER = "openBuzzer"
    CLOSE_BUZZER = "closeBuzzer"
    AWARD_POINTS = "awardPoints"
    WRONG_ANSWER = "wrongAnswer"
    NO_WINNER = "noWinner"
    RESET_QUESTION = "resetQuestion"
    DISCONNECT_MEDIATOR = "disconnectMediator"
    END_GAME = "endGame"

    @classmethod
    def parse(cls, raw: Any) -> ControlAction | None:
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(frozen=True)
class ControlResult:
    action: ControlAction
    ended: bool = False

    def to_payload(self) -> dict[str, object]:
        payload: dict[str, object] = {"success": True}
        if self.ended:
            payload["ended"] = True
        return payload


Outcome = ControlResult | Rejection
Handler = Callable[[GameSession, dict[str, Any], int], Outcome]


def _payload_player(session: GameSession, payload: dict[str, Any]) -> str | Rejection:
    player_id = str(payload.get("playerId") or "").strip()
    if not player_id:
        return reject(RejectReason.INVALID_PAYLOAD, "playerId is required")
    if player_id not in session.players:
        return reject(RejectReason.PLAYER_NOT_FOUND)
    return player_id


def _payload_index(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        value = value.strip()
        return int(value) if value.isdigit() else None
    return value if isinstance(value, int) else None


def start_game(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    session.started = True
    return ControlResult(ControlAction.START_GAME)


def select_question(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    category_idx = _payload_index(payload.get("categoryIdx"))
    question_idx = _payload_index(payload.get("questionIdx"))
    if category_idx is None or question_idx is None:
        return reject(RejectReason.INVALID_PAYLOAD, "categoryIdx and questionIdx are required")
    if not session.has_cell(category_idx, question_idx):
        return reject(RejectReason.INVALID_QUESTION)
    if session.current_question is not None:
        return reject(RejectReason.QUESTION_IN_PROGRESS)

    ref = QuestionRef(category_idx, question_idx)
    if session.question_at(ref).used:
        return reject(RejectReason.QUESTION_ALREADY_USED)

    session.current_question = ref
    session.reset_round()
    session.answer_revealed = False
    return ControlResult(ControlAction.SELECT_QUESTION)


def reveal_answer(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    if session.current_question is None:
        return reject(RejectReason.NO_QUESTION_SELECTED)
    session.answer_revealed = True
    return ControlResult(ControlAction.REVEAL_ANSWER)


def open_buzzer(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    if session.current_question is None:
        return reject(RejectReason.NO_QUESTION_SELECTED)
    if session.buzzer_state != "closed":
        return reject(RejectReason.BUZZER_NOT_CLOSED)
    session.buzzer_state = "open"
    session.buzzer_opened_at = now
    return ControlResult(ControlAction.OPEN_BUZZER)


def close_buzzer(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    session.buzzer_state = "locked"
    return ControlResult(ControlAction.CLOSE_BUZZER)


def _resolve_question(session: GameSession, ref: QuestionRef) -> None:
    session.question_at(ref).used = True
    session.current_question = None
    session.reset_round()


def award_points(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    if session.current_question is None:
        return reject(RejectReason.NO_QUESTION_SELECTED)
    player_id = _payload_player(session, payload)
    if isinstance(player_id, Rejection):
        return player_id

    ref = session.current_question
    session.players[player_id].score += session.question_at(ref).value
    _resolve_question(session, ref)
    return ControlResult(ControlAction.AWARD_POINTS)


def wrong_answer(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    if session.current_question is None:
        return reject(RejectReason.NO_QUESTION_SELECTED)
    player_id = _payload_player(session, payload)
    if isinstance(player_id, Rejection):
        return player_id

    session.players[player_id].score -= session.question_at(session.current_question).value
    if player_id not in session.eliminated_from_round:
        session.eliminated_from_round.append(player_id)
    # Everyone else gets another go at the same question.
    session.buzzes = []
    session.buzzer_state = "open"
    session.buzzer_opened_at = now
    return ControlResult(ControlAction.WRONG_ANSWER)


def no_winner(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    if session.current_question is None:
        return reject(RejectReason.NO_QUESTION_SELECTED)
    _resolve_question(session, session.current_question)
    return ControlResult(ControlAction.NO_WINNER)


def reset_question(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    session.reset_round()
    return ControlResult(ControlAction.RESET_QUESTION)


def disconnect_mediator(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    session.mediator_token = None
    return ControlResult(ControlAction.DISCONNECT_MEDIATOR)


def end_game(session: GameSession, payload: dict[str, Any], now: int) -> Outcome:
    return ControlResult(ControlAction.END_GAME, ended=True)


CONTROL_HANDLERS: dict[ControlAction, Handler] = {
    ControlAction.START_GAME: start_game,
    ControlAction.SELECT_QUESTION: select_question,
    ControlAction.REVEAL_ANSWER: reveal_answer,
    ControlAction.OPEN_BUZZER: open_buzzer,
    ControlAction.CLOSE_BUZZER: close_buzzer,
    ControlAction.AWARD_POINTS: award_points,
    ControlAction.WRONG_ANSWER: wrong_answer,
    ControlAction.NO_WINNER: no_winner,
    ControlAction.RESET_QUESTION: reset_question,
    ControlAction.DISCONNECT_MEDIATOR: disconnect_mediator,
    ControlAction.END_GAME: end_game,
}


def apply_control(
    session: GameSession,
    action: ControlAction,
    payload: dict[str, Any],
    now: int,
) -> Outcome:
    return CONTROL_HANDLERS[action](session, payload, now)
