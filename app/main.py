from __future__ import annotations

import logging
from typing import Any, Callable, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, Response

from chat.errors import UpstreamError
from chat.proxy import build_request_body, extract_reply, filter_history
from chat.upstream import GeminiClient
from config.settings import Settings, get_settings


settings = get_settings()
logging.basicConfig(level=settings.log_level, format="[%(asctime)s] %(levelname)s - %(message)s")
logger = logging.getLogger("gemini_chat")

app = FastAPI(title="Gemini Chat Proxy", version="1.0.0")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Client-Info, Apikey",
}

ClientFactory = Callable[[Settings], GeminiClient]


def get_client_factory() -> ClientFactory:
    return GeminiClient.from_settings


# Every response carries the same headers; preflight never reaches a route.
@app.middleware("http")
async def cors_headers(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response


def _error(status_code: int, **body: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=body)


@app.get("/health")
def health():
    return {"status": "ok"}


# GET, PUT and DELETE reach the same handler; their empty bodies fail JSON
# decoding and get the generic error.
@app.api_route("/{path:path}", methods=["POST", "GET", "PUT", "DELETE"])
async def chat(
    request: Request,
    settings: Settings = Depends(get_settings),
    client_factory: ClientFactory = Depends(get_client_factory),
) -> Dict[str, Any]:
    try:
        payload = await request.json()
        if not isinstance(payload, dict):
            payload = {}

        message = payload.get("message")
        if not message or not isinstance(message, str):
            return _error(400, error="Message is required")

        if not settings.gemini_api_key:
            logger.error("GEMINI_API_KEY is not configured")
            return _error(500, error="Gemini API key not configured")

        history, dropped = filter_history(payload.get("conversationHistory", []))
        logger.info(
            "Incoming chat: message_len=%s history_turns=%s dropped=%s new_conversation=%s",
            len(message),
            len(history),
            dropped,
            not history,
        )

        body = build_request_body(message, history, settings.persona)
        client = client_factory(settings)
        try:
            data = await client.generate(body)
        except UpstreamError as exc:
            logger.debug("Request contents: %s", body["contents"])
            return _error(
                500,
                error="Failed to get response from AI",
                details=exc.body,
                status=exc.status,
            )

        reply = extract_reply(data)
        logger.info("Model responded with %s chars", len(reply))
        return {"response": reply}
    except Exception as e:
        logger.exception("Chat processing failed: %s", e)
        return _error(500, error="Internal server error")
