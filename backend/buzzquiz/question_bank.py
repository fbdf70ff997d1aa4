from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .config import settings
from .game_constants import QUESTION_VALUE_STEP
from .game_types import BoardQuestion, Category

logger = logging.getLogger(__name__)

_catalog_cache: dict[str, Any] | None = None


class QuestionBankError(ValueError):
    pass


def _require_text(raw: dict[str, Any], key: str, where: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value.strip():
        raise QuestionBankError(f"{where}: missing '{key}'")
    return value.strip()


def _question_value(raw: dict[str, Any], index: int, where: str) -> int:
    value = raw.get("value")
    if value is None:
        return (index + 1) * QUESTION_VALUE_STEP
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuestionBankError(f"{where}: 'value' must be a positive integer")
    return value


def _build_category(raw: Any, category_index: int) -> Category:
    where = f"category {category_index}"
    if not isinstance(raw, dict):
        raise QuestionBankError(f"{where}: expected an object")

    name = _require_text(raw, "name", where)
    questions_raw = raw.get("questions")
    if not isinstance(questions_raw, list) or not questions_raw:
        raise QuestionBankError(f"{where}: 'questions' must be a non-empty list")

    questions: list[BoardQuestion] = []
    for index, question_raw in enumerate(questions_raw):
        question_where = f"{where}, question {index}"
        if not isinstance(question_raw, dict):
            raise QuestionBankError(f"{question_where}: expected an object")
        questions.append(
            BoardQuestion(
                value=_question_value(question_raw, index, question_where),
                question=_require_text(question_raw, "question", question_where),
                answer=_require_text(question_raw, "answer", question_where),
            )
        )
    return Category(name=name, questions=questions)


def build_board(source: Any) -> list[Category]:
    """Turn a ``{categories: [{name, questions: [...]}]}`` payload into a fresh board.

    Only the shape is checked, never the trivia itself. Every cell starts
    unused. Raises ``QuestionBankError`` on malformed input.
    """
    if not isinstance(source, dict):
        raise QuestionBankError("question set must be an object")
    categories_raw = source.get("categories")
    if not isinstance(categories_raw, list) or not categories_raw:
        raise QuestionBankError("'categories' must be a non-empty list")
    return [_build_category(raw, index) for index, raw in enumerate(categories_raw)]


def load_catalog(path: Path | None = None) -> dict[str, Any]:
    global _catalog_cache
    if path is None and _catalog_cache is not None:
        return _catalog_cache

    catalog_path = path or settings.questions_path
    try:
        payload = json.loads(catalog_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise QuestionBankError(f"cannot read question catalog {catalog_path}") from exc

    # Validate once so a broken catalog fails at load time, not on first create.
    board = build_board(payload)
    logger.info(
        "Loaded question catalog %s (%d categories)",
        catalog_path,
        len(board),
    )
    if path is None:
        _catalog_cache = payload
    return payload


def default_board() -> list[Category]:
    return build_board(load_catalog())
