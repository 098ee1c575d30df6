from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from chat.core.prompt import DEFAULT_PERSONA


load_dotenv()


DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Keyword arguments
    override the environment, which is how tests build explicit settings.
    """

    def __init__(
        self,
        *,
        gemini_api_key: Optional[str] = None,
        gemini_model: Optional[str] = None,
        gemini_api_base: Optional[str] = None,
        persona: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> None:
        self.gemini_api_key: Optional[str] = (
            gemini_api_key if gemini_api_key is not None else os.getenv("GEMINI_API_KEY") or None
        )
        self.gemini_model: str = gemini_model or os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL)
        self.gemini_api_base: str = (
            gemini_api_base or os.getenv("GEMINI_API_BASE", DEFAULT_GEMINI_API_BASE)
        ).rstrip("/")
        # An empty persona is allowed and disables the system instruction.
        self.persona: str = persona if persona is not None else os.getenv("CHAT_PERSONA", DEFAULT_PERSONA)
        self.log_level: str = (log_level or os.getenv("LOG_LEVEL", "INFO")).upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
