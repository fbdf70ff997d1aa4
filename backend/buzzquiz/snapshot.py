from __future__ import annotations

from typing import Any, cast

from .game_types import (
    BoardQuestion,
    Buzz,
    BuzzerState,
    Category,
    GameSession,
    Player,
    QuestionRef,
)
from .game_utils import as_optional_int

BUZZER_STATES = ("closed", "open", "locked")


class SnapshotError(ValueError):
    pass


def serialize_session(session: GameSession) -> dict[str, Any]:
    current_question = (
        {
            "categoryIdx": session.current_question.category_idx,
            "questionIdx": session.current_question.question_idx,
        }
        if session.current_question is not None
        else None
    )
    return {
        "id": session.id,
        "hostToken": session.host_token,
        "mediatorToken": session.mediator_token,
        "createdAt": session.created_at,
        "started": session.started,
        "board": {
            "categories": [category.name for category in session.board],
            "questions": [
                [
                    {
                        "value": question.value,
                        "question": question.question,
                        "answer": question.answer,
                        "used": question.used,
                    }
                    for question in category.questions
                ]
                for category in session.board
            ],
        },
        "players": {
            player_id: {"name": player.name, "score": player.score}
            for player_id, player in session.players.items()
        },
        "currentQuestion": current_question,
        "buzzerState": session.buzzer_state,
        "buzzerOpenedAt": session.buzzer_opened_at,
        "buzzes": [
            {
                "playerId": entry.player_id,
                "timestamp": entry.timestamp,
                "reactionTimeMs": entry.reaction_time_ms,
            }
            for entry in session.buzzes
        ],
        "eliminatedFromRound": list(session.eliminated_from_round),
        "answerRevealed": session.answer_revealed,
    }


def _board_from_state(board_raw: Any) -> list[Category]:
    if not isinstance(board_raw, dict):
        raise SnapshotError("board is missing")
    names = board_raw.get("categories")
    grid = board_raw.get("questions")
    if not isinstance(names, list) or not isinstance(grid, list) or len(names) != len(grid):
        raise SnapshotError("board categories and questions do not line up")

    board: list[Category] = []
    for name, questions_raw in zip(names, grid):
        if not isinstance(questions_raw, list):
            raise SnapshotError("board row is not a list")
        questions: list[BoardQuestion] = []
        for question_raw in questions_raw:
            if not isinstance(question_raw, dict):
                raise SnapshotError("board cell is not an object")
            questions.append(
                BoardQuestion(
                    value=int(question_raw.get("value") or 0),
                    question=str(question_raw.get("question") or ""),
                    answer=str(question_raw.get("answer") or ""),
                    used=bool(question_raw.get("used")),
                )
            )
        board.append(Category(name=str(name), questions=questions))
    return board


def deserialize_session(state: dict[str, Any]) -> GameSession:
    if not isinstance(state, dict):
        raise SnapshotError("session snapshot must be an object")

    session_id = str(state.get("id") or "")
    host_token = str(state.get("hostToken") or "")
    if not session_id or not host_token:
        raise SnapshotError("session snapshot lacks id or host token")

    session = GameSession(
        id=session_id,
        host_token=host_token,
        board=_board_from_state(state.get("board")),
        created_at=as_optional_int(state.get("createdAt")) or 0,
    )
    mediator_token = state.get("mediatorToken")
    session.mediator_token = str(mediator_token) if mediator_token else None
    session.started = bool(state.get("started"))

    players_raw = state.get("players")
    if isinstance(players_raw, dict):
        session.players = {
            str(player_id): Player(
                name=str(payload.get("name") or ""),
                score=int(payload.get("score") or 0),
            )
            for player_id, payload in players_raw.items()
            if isinstance(payload, dict)
        }

    current_raw = state.get("currentQuestion")
    if isinstance(current_raw, dict):
        category_idx = as_optional_int(current_raw.get("categoryIdx"))
        question_idx = as_optional_int(current_raw.get("questionIdx"))
        if category_idx is not None and question_idx is not None:
            session.current_question = QuestionRef(category_idx, question_idx)

    buzzer_state_raw = state.get("buzzerState")
    if buzzer_state_raw in BUZZER_STATES:
        session.buzzer_state = cast(BuzzerState, buzzer_state_raw)
    session.buzzer_opened_at = as_optional_int(state.get("buzzerOpenedAt"))

    buzzes_raw = state.get("buzzes")
    if isinstance(buzzes_raw, list):
        session.buzzes = [
            Buzz(
                player_id=str(entry.get("playerId")),
                timestamp=int(entry.get("timestamp") or 0),
                reaction_time_ms=as_optional_int(entry.get("reactionTimeMs")),
            )
            for entry in buzzes_raw
            if isinstance(entry, dict) and entry.get("playerId")
        ]

    eliminated_raw = state.get("eliminatedFromRound")
    if isinstance(eliminated_raw, list):
        session.eliminated_from_round = list(
            dict.fromkeys(str(player_id) for player_id in eliminated_raw if player_id)
        )

    session.answer_revealed = bool(state.get("answerRevealed"))
    return session
