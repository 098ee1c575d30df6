"""Shared fixtures: explicit settings and a recording fake Gemini client."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.main import app, get_client_factory
from config.settings import Settings, get_settings


class FakeGemini:
    """Stands in for GeminiClient and records every request body."""

    def __init__(self, data: Optional[Dict[str, Any]] = None, error: Optional[BaseException] = None):
        self.data = data if data is not None else {
            "candidates": [{"content": {"role": "model", "parts": [{"text": "Hello there!"}]}}]
        }
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, body: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append(body)
        if self.error is not None:
            raise self.error
        return self.data


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        gemini_model="gemini-1.5-flash",
        gemini_api_base="https://gemini.test/v1beta",
        persona="You are Rafi.",
    )


@pytest.fixture
def fake_gemini():
    return FakeGemini()


@pytest.fixture
def client(settings, fake_gemini):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_client_factory] = lambda: (lambda s: fake_gemini)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
