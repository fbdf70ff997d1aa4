"""Rejections returned by the game engine.

Expected gameplay outcomes (buzzing on a locked buzzer, a taken name, a used
question) are not faults, so the engine hands them back as ``Rejection``
values instead of raising. Storage failures still propagate as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    VALIDATION = "validation"
    CONFLICT = "conflict"
    UNKNOWN_ACTION = "unknown_action"


class RejectReason(Enum):
    GAME_NOT_FOUND = ("game_not_found", ErrorKind.NOT_FOUND, "Game not found")
    PLAYER_NOT_FOUND = ("player_not_found", ErrorKind.NOT_FOUND, "Player not in game")
    INVALID_HOST_TOKEN = ("invalid_host_token", ErrorKind.UNAUTHORIZED, "Invalid host token")
    INVALID_MEDIATOR_TOKEN = (
        "invalid_mediator_token",
        ErrorKind.UNAUTHORIZED,
        "Invalid mediator token",
    )
    NAME_REQUIRED = ("name_required", ErrorKind.VALIDATION, "Name is required")
    MISSING_ACTION = ("missing_action", ErrorKind.VALIDATION, "Action is required")
    INVALID_PAYLOAD = ("invalid_payload", ErrorKind.VALIDATION, "Invalid action payload")
    INVALID_QUESTIONS = ("invalid_questions", ErrorKind.VALIDATION, "Invalid question set")
    INVALID_QUESTION = ("invalid_question", ErrorKind.VALIDATION, "Question does not exist")
    ALREADY_STARTED = ("already_started", ErrorKind.CONFLICT, "Game has already started")
    DUPLICATE_NAME = ("duplicate_name", ErrorKind.CONFLICT, "Name already taken")
    QUESTION_ALREADY_USED = (
        "question_already_used",
        ErrorKind.CONFLICT,
        "Question already used",
    )
    QUESTION_IN_PROGRESS = (
        "question_in_progress",
        ErrorKind.CONFLICT,
        "Another question is still in progress",
    )
    ALREADY_BUZZED = ("already_buzzed", ErrorKind.CONFLICT, "Already buzzed")
    BUZZER_NOT_OPEN = ("buzzer_not_open", ErrorKind.CONFLICT, "Buzzer is not open")
    BUZZER_NOT_CLOSED = ("buzzer_not_closed", ErrorKind.CONFLICT, "Buzzer is not closed")
    ALREADY_ELIMINATED = (
        "already_eliminated",
        ErrorKind.CONFLICT,
        "You already got this question wrong",
    )
    MEDIATOR_ALREADY_CONNECTED = (
        "mediator_already_connected",
        ErrorKind.CONFLICT,
        "Mediator already connected",
    )
    NO_QUESTION_SELECTED = (
        "no_question_selected",
        ErrorKind.CONFLICT,
        "No question selected",
    )
    UNKNOWN_ACTION = ("unknown_action", ErrorKind.UNKNOWN_ACTION, "Unknown action")

    def __init__(self, code: str, kind: ErrorKind, message: str) -> None:
        self.code = code
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class Rejection:
    reason: RejectReason
    detail: str | None = None

    @property
    def kind(self) -> ErrorKind:
        return self.reason.kind

    @property
    def code(self) -> str:
        return self.reason.code

    @property
    def message(self) -> str:
        return self.detail or self.reason.message

    def to_payload(self) -> dict[str, object]:
        return {"error": self.message, "code": self.code}


def reject(reason: RejectReason, detail: str | None = None) -> Rejection:
    return Rejection(reason=reason, detail=detail)
