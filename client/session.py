from __future__ import annotations

import logging
import random
import secrets
import threading
import time
from typing import Any, Dict, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from config.settings import get_settings
from relay.schemas import trim


logger = logging.getLogger(__name__)

HISTORY_WINDOW = 14
PERSONAS = ["spicy", "cool", "funny", "nonchalant"]
FALLBACK_REPLY = "Connection got noisy. Try sending that again."

STARTER_LINES: Dict[str, str] = {
    "Neon": "Neon here. I am online now. Tell me what happened today.",
    "Echo": "Echo connected. Talk to me like you mean it. What is on your mind?",
    "Nova": "Nova in the channel. Give me one thing you want help with right now.",
}
CHARACTER_IMAGES: Dict[str, str] = {
    "Neon": "chat-1.jpg",
    "Echo": "chat-2.gif",
    "Nova": "chat-3.gif",
}


def _now_ms() -> int:
    return int(time.time() * 1000)


def _make_id(prefix: str) -> str:
    return f"{prefix}-{_now_ms()}-{secrets.token_hex(4)}"


class Turn(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: str = Field(..., description="'user' or 'assistant'")
    text: str
    id: str = ""

    @classmethod
    def create(cls, role: str, text: str) -> "Turn":
        return cls(role=role, text=text, id=_make_id(role))


def starter_line(character: str) -> str:
    return STARTER_LINES.get(character, STARTER_LINES["Neon"])


def typing_delay(text: str, jitter: Optional[float] = None) -> float:
    """Seconds the typing indicator stays up at minimum, from 0.5 to 1.9."""
    if jitter is None:
        jitter = random.randint(0, 449) / 1000
    return min(1.9, max(0.5, len(text) * 0.028 + jitter))


class ChatSession:
    """One active conversation with a character, talking to the relay."""

    def __init__(
        self,
        character: str = "Neon",
        api_url: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_url = api_url or get_settings().chat_api_url
        self.http_client = http_client
        self.character = character
        self.persona = "cool"
        self.messages: List[Turn] = []
        self.error = ""
        self._in_flight = threading.Lock()
        self.start(character)

    @property
    def is_typing(self) -> bool:
        return self._in_flight.locked()

    def start(self, character: str) -> None:
        self.character = character
        self.persona = "cool"
        self.messages = [Turn.create("assistant", starter_line(character))]
        self.error = ""

    def clear(self) -> None:
        self.messages = [Turn.create("assistant", starter_line(self.character))]

    def delete_message(self, message_id: str) -> None:
        remaining = [m for m in self.messages if m.id != message_id]
        self.messages = remaining or [Turn.create("assistant", starter_line(self.character))]

    def history_payload(self) -> List[Dict[str, str]]:
        return [{"role": m.role, "text": m.text} for m in self.messages[-HISTORY_WINDOW:]]

    def send(self, text: str) -> Optional[Turn]:
        """Send one user turn; returns the assistant turn, or None if rejected."""
        text = trim(text or "")
        if not text:
            return None
        if not self._in_flight.acquire(blocking=False):
            return None

        try:
            self.messages = self.messages + [Turn.create("user", text)]
            self.error = ""
            try:
                reply = self._request_reply(text)
                turn = Turn.create("assistant", reply)
            except Exception as e:
                logger.warning("Chat request failed: %s", e)
                self.error = str(e) or "Chat failed. Try again."
                turn = Turn.create("assistant", FALLBACK_REPLY)
            self.messages = self.messages + [turn]
            return turn
        finally:
            self._in_flight.release()

    def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        if self.http_client is not None:
            return self.http_client.post(self.api_url, json=payload)
        with httpx.Client(timeout=None) as client:
            return client.post(self.api_url, json=payload)

    def _request_reply(self, text: str) -> str:
        payload = {
            "message": text,
            "character": self.character,
            "persona": self.persona,
            "history": self.history_payload(),
        }
        delay = typing_delay(text)
        started = time.monotonic()

        response = self._post(payload)

        remaining = delay - (time.monotonic() - started)
        if remaining > 0:
            time.sleep(remaining)

        try:
            data = response.json()
        except ValueError:
            data = None

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            raise RuntimeError(error or "Unable to reach the chat server.")

        reply = data.get("reply") if isinstance(data, dict) else None
        reply = trim(reply) if isinstance(reply, str) else ""
        if not reply:
            raise RuntimeError("The bot replied with an empty message.")
        return reply

    def snapshot(self) -> Dict[str, Any]:
        first_user = next((m.text for m in self.messages if m.role == "user"), "")
        title = first_user or f"{self.character} chat"
        if len(title) > 24:
            title = f"{title[:24]}..."
        return {
            "id": _make_id("saved"),
            "title": title,
            "character": self.character,
            "persona": self.persona,
            "image": CHARACTER_IMAGES.get(self.character, CHARACTER_IMAGES["Neon"]),
            "createdAt": _now_ms(),
            "messages": [m.model_dump() for m in self.messages],
        }

    def open(self, saved: Dict[str, Any]) -> bool:
        if not isinstance(saved, dict) or not isinstance(saved.get("messages"), list):
            return False
        self.character = saved.get("character") or "Neon"
        self.persona = saved.get("persona") or "cool"
        self.messages = [
            Turn(
                role=m["role"] if isinstance(m.get("role"), str) else "user",
                text=m["text"],
                id=str(m.get("id") or _make_id("restored")),
            )
            for m in saved["messages"]
            if isinstance(m, dict) and isinstance(m.get("text"), str)
        ]
        self.error = ""
        return True
