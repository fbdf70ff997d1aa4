from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class QuestionItem(BaseModel):
    value: int | None = Field(default=None, gt=0)
    question: str = Field(min_length=1, max_length=1000)
    answer: str = Field(min_length=1, max_length=500)


class CategoryItem(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    questions: list[QuestionItem] = Field(min_length=1, max_length=10)


class QuestionSet(BaseModel):
    categories: list[CategoryItem] = Field(min_length=1, max_length=10)


class CreateGameRequest(BaseModel):
    customQuestions: QuestionSet | None = None


class JoinGameRequest(BaseModel):
    playerName: str = Field(default="", max_length=64)


class BuzzRequest(BaseModel):
    playerId: str = Field(default="", max_length=64)
    reactionTimeMs: int | None = Field(default=None, ge=0, le=600_000)


class ControlRequest(BaseModel):
    hostToken: str | None = Field(default=None, max_length=256)
    action: str | None = Field(default=None, max_length=64)
    payload: dict[str, Any] | None = None
