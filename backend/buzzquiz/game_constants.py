from __future__ import annotations

from .config import settings

GAME_TTL_SECONDS = settings.game_ttl_seconds
BUZZER_WINDOW_MS = settings.buzzer_window_ms
GAME_CODE_CHARS = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
GAME_CODE_LENGTH = 6
GAME_ID_MAX_LENGTH = 8
PLAYER_ID_LENGTH = 8
PLAYER_NAME_MAX_LENGTH = 24
QUESTION_VALUE_STEP = 200
UNKNOWN_PLAYER_NAME = "Unknown"
