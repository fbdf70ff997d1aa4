from __future__ import annotations

from typing import Any

from .game_constants import UNKNOWN_PLAYER_NAME
from .game_types import GameSession
from .game_utils import tokens_match


def build_current_question(session: GameSession, *, with_answer: bool) -> dict[str, Any] | None:
    ref = session.current_question
    if ref is None:
        return None
    question = session.question_at(ref)
    payload: dict[str, Any] = {
        "category": session.board[ref.category_idx].name,
        "categoryIdx": ref.category_idx,
        "questionIdx": ref.question_idx,
        "value": question.value,
        "question": question.question,
    }
    if with_answer:
        payload["answer"] = question.answer
    return payload


def build_buzz_list(session: GameSession) -> list[dict[str, Any]]:
    entries: list[dict[str, Any]] = []
    for entry in session.buzzes:
        player = session.players.get(entry.player_id)
        entries.append(
            {
                "playerId": entry.player_id,
                "playerName": player.name if player is not None else UNKNOWN_PLAYER_NAME,
                "timestamp": entry.timestamp,
            }
        )
    return entries


def build_public_view(
    session: GameSession,
    requesting_player_id: str | None = None,
    *,
    with_answer: bool = False,
) -> dict[str, Any]:
    """Project the state every participant may see.

    Board cells expose only ``value`` and ``used``; question text appears
    solely for the selected question, and the answer only when
    ``with_answer`` is set by a privileged projection.
    """
    return {
        "id": session.id,
        "started": session.started,
        "hasMediator": session.mediator_token is not None,
        "categories": [category.name for category in session.board],
        "board": [
            [{"value": question.value, "used": question.used} for question in category.questions]
            for category in session.board
        ],
        "players": [
            {"id": player_id, "name": player.name, "score": player.score}
            for player_id, player in session.players.items()
        ],
        "currentQuestion": build_current_question(session, with_answer=with_answer),
        "buzzerState": session.buzzer_state,
        "buzzerOpenedAt": session.buzzer_opened_at,
        "buzzes": build_buzz_list(session),
        "eliminatedFromRound": list(session.eliminated_from_round),
        "myBuzzed": bool(requesting_player_id) and session.has_buzzed(requesting_player_id or ""),
        "amEliminated": bool(requesting_player_id)
        and requesting_player_id in session.eliminated_from_round,
        "answerRevealed": session.answer_revealed,
    }


def build_host_view(session: GameSession, host_token: str | None) -> dict[str, Any] | None:
    if not tokens_match(session.host_token, host_token):
        return None
    return build_public_view(session, with_answer=True)


def build_mediator_view(session: GameSession, mediator_token: str | None) -> dict[str, Any] | None:
    if not tokens_match(session.mediator_token, mediator_token):
        return None
    return build_public_view(session, with_answer=session.answer_revealed)
