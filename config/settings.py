from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Values are read when
    the object is built, so tests can set env vars and clear the cache.
    """

    def __init__(self) -> None:
        self.host: str = os.getenv("HOST", "0.0.0.0")
        self.port: int = int(os.getenv("PORT", "3001"))

        self.gemini_api_key: Optional[str] = os.getenv("GEMINI_API_KEY") or None
        self.gemini_model: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
        self.gemini_api_base: str = os.getenv(
            "GEMINI_API_BASE", "https://generativelanguage.googleapis.com/v1beta"
        ).rstrip("/")
        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.8"))
        self.max_output_tokens: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "512"))
        # None leaves the upstream call without a timeout of our own
        self.upstream_timeout: Optional[float] = _optional_float("UPSTREAM_TIMEOUT")

        self.max_body_bytes: int = int(os.getenv("MAX_BODY_BYTES", "1000000"))

        self.chat_api_url: str = os.getenv("CHAT_API_URL", "http://localhost:3001/api/chat")
        self.saved_chats_path: Path = Path(
            os.getenv("SAVED_CHATS_PATH", "~/.neon-relay/saved-chats.json")
        ).expanduser()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
