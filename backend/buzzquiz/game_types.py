from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

BuzzerState = Literal["closed", "open", "locked"]


@dataclass
class BoardQuestion:
    value: int
    question: str
    answer: str
    used: bool = False


@dataclass
class Category:
    name: str
    questions: list[BoardQuestion] = field(default_factory=list)


@dataclass
class Player:
    name: str
    score: int = 0


@dataclass(frozen=True)
class QuestionRef:
    category_idx: int
    question_idx: int


@dataclass
class Buzz:
    player_id: str
    timestamp: int
    # Client-reported reaction time. Never used for ordering.
    reaction_time_ms: int | None = None


@dataclass
class GameSession:
    id: str
    host_token: str
    board: list[Category]
    created_at: int
    mediator_token: str | None = None
    started: bool = False
    players: dict[str, Player] = field(default_factory=dict)
    current_question: QuestionRef | None = None
    buzzer_state: BuzzerState = "closed"
    buzzer_opened_at: int | None = None
    buzzes: list[Buzz] = field(default_factory=list)
    eliminated_from_round: list[str] = field(default_factory=list)
    answer_revealed: bool = False

    def question_at(self, ref: QuestionRef) -> BoardQuestion:
        return self.board[ref.category_idx].questions[ref.question_idx]

    def has_cell(self, category_idx: int, question_idx: int) -> bool:
        if category_idx < 0 or category_idx >= len(self.board):
            return False
        return 0 <= question_idx < len(self.board[category_idx].questions)

    def has_buzzed(self, player_id: str) -> bool:
        return any(entry.player_id == player_id for entry in self.buzzes)

    def reset_round(self) -> None:
        self.buzzer_state = "closed"
        self.buzzes = []
        self.eliminated_from_round = []
