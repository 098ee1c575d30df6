from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from chat.errors import UpstreamError
from config.settings import Settings


logger = logging.getLogger(__name__)


class GeminiClient:
    """Calls the Gemini ``generateContent`` REST endpoint.

    The client imposes no timeout of its own; cancellation of the awaiting
    task aborts the request.
    """

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "GeminiClient":
        if not settings.gemini_api_key:
            raise RuntimeError("GEMINI_API_KEY not set. Please configure it in environment or .env")
        return cls(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            base_url=settings.gemini_api_base,
            transport=transport,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    async def generate(self, body: Dict[str, Any]) -> Dict[str, Any]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }
        async with httpx.AsyncClient(timeout=None, transport=self._transport) as client:
            response = await client.post(self.endpoint, json=body, headers=headers)

        if not response.is_success:
            logger.error(
                "Gemini API error: status=%s body=%s", response.status_code, response.text
            )
            raise UpstreamError(response.status_code, response.text)

        return response.json()
