from __future__ import annotations

import re
import secrets
import time
import uuid
from typing import Any

from .game_constants import (
    GAME_CODE_CHARS,
    GAME_CODE_LENGTH,
    GAME_ID_MAX_LENGTH,
    PLAYER_ID_LENGTH,
    PLAYER_NAME_MAX_LENGTH,
)


def now_ms() -> int:
    return int(time.time() * 1000)


def random_game_code(length: int = GAME_CODE_LENGTH) -> str:
    return "".join(secrets.choice(GAME_CODE_CHARS) for _ in range(max(4, length)))


def random_player_id() -> str:
    return uuid.uuid4().hex[:PLAYER_ID_LENGTH]


def generate_secret(length: int = 32) -> str:
    return secrets.token_urlsafe(length)


def tokens_match(expected: str | None, provided: str | None) -> bool:
    if not expected or not provided:
        return False
    return secrets.compare_digest(expected.encode("utf-8"), provided.encode("utf-8"))


def sanitize_game_id(raw: str | None) -> str:
    value = (raw or "").upper()
    filtered = "".join(ch for ch in value if ch.isalnum())
    return filtered[:GAME_ID_MAX_LENGTH]


def sanitize_player_name(raw: Any) -> str:
    value = str(raw or "").strip()
    if not value:
        return ""
    return re.sub(r"\s+", " ", value)[:PLAYER_NAME_MAX_LENGTH].strip()


def normalize_player_name(name: str | None) -> str:
    return str(name or "").strip().casefold()


def as_optional_int(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None
