from __future__ import annotations

import re
from typing import Any, List

from pydantic import BaseModel, Field, model_validator


DEFAULT_CHARACTER = "Neon"
DEFAULT_PERSONA = "cool"

# str.strip() leaves the byte order mark alone
_EDGE_BLANKS = re.compile(r"^[\s\ufeff]+|[\s\ufeff]+$")


def trim(text: str) -> str:
    return _EDGE_BLANKS.sub("", text)


class ChatRequest(BaseModel):
    message: str = Field("", description="User's latest message, trimmed")
    history: List[Any] = Field(
        default_factory=list,
        description="Most recent turns, oldest first (frontend-managed window)",
    )
    character: str = Field(DEFAULT_CHARACTER, description="Character the model plays")
    persona: str = Field(DEFAULT_PERSONA, description="Tone tag, lower-cased")

    @model_validator(mode="before")
    @classmethod
    def _coerce_loose_fields(cls, values):
        # Browsers send whatever they like; wrong types fall back to defaults
        # instead of failing validation.
        if not isinstance(values, dict):
            values = {}

        message = values.get("message")
        history = values.get("history")
        character = values.get("character")
        persona = values.get("persona")

        return {
            "message": trim(message) if isinstance(message, str) else "",
            "history": history if isinstance(history, list) else [],
            "character": character if isinstance(character, str) else DEFAULT_CHARACTER,
            "persona": persona.lower() if isinstance(persona, str) else DEFAULT_PERSONA,
        }
