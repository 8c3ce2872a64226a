from __future__ import annotations

from typing import Any, Dict, List, Optional

from relay.schemas import DEFAULT_CHARACTER, DEFAULT_PERSONA


PERSONA_TONES: Dict[str, str] = {
    "spicy": "Use a bold, teasing, high-energy tone with sharp lines but do not be rude.",
    "cool": "Use a calm, confident, smooth tone. Keep it chill and clear.",
    "funny": "Use a playful, witty tone with light humor.",
    "nonchalant": "Use a detached, minimal, nonchalant tone with short responses.",
}

CONCISENESS_DIRECTIVE = "Keep responses conversational and concise unless asked for detail."


def to_gemini_role(role: Any) -> str:
    """Gemini only knows "user" and "model"; assistant turns are the model's."""
    if role == "assistant":
        return "model"
    return "user"


def persona_instruction(persona: Optional[str]) -> str:
    return PERSONA_TONES.get(persona or "", PERSONA_TONES[DEFAULT_PERSONA])


def build_instruction(character: Optional[str], persona: Optional[str]) -> str:
    return (
        f"You are roleplaying as {character or DEFAULT_CHARACTER} in a cyberpunk chat app. "
        f"{persona_instruction(persona)} {CONCISENESS_DIRECTIVE}"
    )


def _block(role: str, text: str) -> Dict[str, Any]:
    return {"role": role, "parts": [{"text": text}]}


def build_contents(
    history: Any,
    message: str,
    character: Optional[str],
    persona: Optional[str],
) -> List[Dict[str, Any]]:
    """Assemble the full ``contents`` list sent upstream.

    The persona instruction always leads, followed by the caller's history in
    order and then the current message. Turns without a string ``text`` are
    skipped. History is not truncated here; the caller owns the window.
    """
    contents: List[Dict[str, Any]] = [_block("user", build_instruction(character, persona))]

    for item in history if isinstance(history, list) else []:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            continue
        contents.append(_block(to_gemini_role(item.get("role")), item["text"]))

    contents.append(_block("user", message))
    return contents
