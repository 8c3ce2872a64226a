from __future__ import annotations

from typing import Any, Dict, List

import httpx

from config.settings import get_settings
from relay.errors import UpstreamError
from relay.prompt import build_contents
from relay.schemas import ChatRequest


def _error_message(data: Any) -> str:
    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
            return error["message"]
    return "Gemini API request failed."


def extract_reply(data: Any) -> str:
    """Join the first candidate's text parts; missing pieces count as empty."""
    parts: List[Any] = []
    if isinstance(data, dict):
        candidates = data.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            if isinstance(content, dict) and isinstance(content.get("parts"), list):
                parts = content["parts"]

    fragments = []
    for part in parts:
        text = part.get("text") if isinstance(part, dict) else None
        fragments.append(text if isinstance(text, str) else "")
    return "".join(fragments).strip()


def build_payload(req: ChatRequest) -> Dict[str, Any]:
    settings = get_settings()
    return {
        "contents": build_contents(req.history, req.message, req.character, req.persona),
        "generationConfig": {
            "temperature": settings.temperature,
            "maxOutputTokens": settings.max_output_tokens,
        },
    }


def generate_reply(req: ChatRequest) -> str:
    settings = get_settings()
    if not settings.gemini_api_key:
        raise UpstreamError("Missing GEMINI_API_KEY. Add it to your .env file.")

    endpoint = f"{settings.gemini_api_base}/models/{settings.gemini_model}:generateContent"
    payload = build_payload(req)

    try:
        with httpx.Client(timeout=settings.upstream_timeout) as client:
            response = client.post(
                endpoint,
                params={"key": settings.gemini_api_key},
                json=payload,
            )
    except httpx.HTTPError as exc:
        raise UpstreamError(f"Gemini API request failed: {exc}") from exc

    try:
        data = response.json()
    except ValueError as exc:
        if not response.is_success:
            raise UpstreamError(_error_message(None)) from exc
        raise UpstreamError("Gemini returned an invalid response.") from exc

    if not response.is_success:
        message = _error_message(data)
        raise UpstreamError(message)

    reply = extract_reply(data)
    if not reply:
        raise UpstreamError("Gemini returned an empty response.")
    return reply
