from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import get_settings
from relay.errors import InvalidRequest, NotFound, RelayError, TransportError
from relay.gemini import generate_reply
from relay.schemas import ChatRequest


logging.basicConfig(level=logging.INFO, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("neon_relay")

app = FastAPI(title="Neon Relay", version="1.0.0")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@app.middleware("http")
async def cors_middleware(request: Request, call_next):
    """Answer every preflight before routing and stamp CORS headers on the rest."""
    if request.method == "OPTIONS":
        return Response(status_code=204, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unknown paths and wrong methods look the same to the client
    if exc.status_code in (404, 405):
        return await relay_error_handler(request, NotFound("Not found."))
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})


async def read_body(request: Request, limit: int) -> bytes:
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise TransportError("Request body is too large.")
    return bytes(body)


def parse_chat_request(raw: bytes) -> ChatRequest:
    try:
        data = json.loads(raw or b"{}")
    except ValueError as exc:
        raise TransportError("Request body is not valid JSON.") from exc
    return ChatRequest.model_validate(data)


@app.post("/api/chat")
async def chat(request: Request) -> Dict[str, Any]:
    try:
        settings = get_settings()
        raw = await read_body(request, settings.max_body_bytes)
        req = parse_chat_request(raw)
        if not req.message:
            raise InvalidRequest("Message is required.")

        logger.info(
            "Incoming chat: character=%s persona=%s history_turns=%s message_len=%s",
            req.character,
            req.persona,
            len(req.history),
            len(req.message),
        )
        reply = await run_in_threadpool(generate_reply, req)
        logger.info("Model responded: %s chars", len(reply))
        return {"reply": reply}
    except RelayError as e:
        if e.status_code >= 500:
            logger.warning("Chat failed: %s", e.message)
        raise
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        raise RelayError(str(e) or "Unknown server error.") from e


def main() -> None:
    import uvicorn

    settings = get_settings()
    logger.info(
        "Gemini chat server listening on http://localhost:%s (model=%s key_set=%s)",
        settings.port,
        settings.gemini_model,
        bool(settings.gemini_api_key),
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
