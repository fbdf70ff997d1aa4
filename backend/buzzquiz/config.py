from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_QUESTIONS_PATH = Path(__file__).resolve().parent / "data" / "questions.json"


class Settings:
    def __init__(self) -> None:
        self.redis_url = os.getenv("REDIS_URL", "").strip()
        self.game_ttl_seconds = max(60, int(os.getenv("GAME_TTL_SECONDS", str(4 * 60 * 60))))
        self.buzzer_window_ms = max(500, int(os.getenv("BUZZER_WINDOW_MS", "5000")))
        self.session_lock_timeout_seconds = max(
            1.0,
            float(os.getenv("SESSION_LOCK_TIMEOUT_SECONDS", "5")),
        )
        self.questions_path = Path(
            os.getenv("QUESTIONS_PATH", "").strip() or DEFAULT_QUESTIONS_PATH
        )
        self.port = int(os.getenv("PORT", "3001"))
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ] or ["*"]


settings = Settings()
