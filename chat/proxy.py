from __future__ import annotations

from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, Field


FALLBACK_REPLY = "I couldn't generate a response."

GENERATION_CONFIG: Dict[str, Any] = {
    "temperature": 0.9,
    "topP": 1.0,
    "maxOutputTokens": 2048,
}


class TextPart(BaseModel):
    text: str


class Turn(BaseModel):
    role: str = Field(..., description="'user' or 'model'")
    parts: List[TextPart]


def user_turn(text: str) -> Dict[str, Any]:
    return Turn(role="user", parts=[TextPart(text=text)]).model_dump()


def filter_history(history: Any) -> Tuple[List[Dict[str, Any]], int]:
    """Keep history entries that have a role and at least one part.

    Returns the kept entries, untouched, and the number dropped. Anything
    that is not a list counts as no history.
    """
    if not isinstance(history, list):
        return [], 0

    kept: List[Dict[str, Any]] = []
    for item in history:
        if not isinstance(item, dict):
            continue
        parts = item.get("parts")
        if not item.get("role") or not isinstance(parts, list) or not parts:
            continue
        kept.append(item)
    return kept, len(history) - len(kept)


def build_request_body(
    message: str, history: List[Dict[str, Any]], persona: str
) -> Dict[str, Any]:
    """Assemble the generateContent body for one chat request.

    A new conversation (no history) carries the persona as the system
    instruction; a continuation sends the history plus the new user turn
    and nothing else.
    """
    body: Dict[str, Any] = {
        "contents": [*history, user_turn(message)],
        "generationConfig": dict(GENERATION_CONFIG),
    }
    if not history and persona:
        body["systemInstruction"] = {"parts": [{"text": persona}]}
    return body


def extract_reply(data: Any) -> str:
    """First candidate's first text part, or the fallback reply."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        return FALLBACK_REPLY
    if not isinstance(text, str) or not text:
        return FALLBACK_REPLY
    return text
