from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from chat.errors import UpstreamError
from chat.upstream import GeminiClient
from config.settings import Settings


def make_client(handler):
    return GeminiClient(
        api_key="k",
        model="gemini-1.5-flash",
        base_url="https://gemini.test/v1beta/",
        transport=httpx.MockTransport(handler),
    )


def test_generate_posts_body_and_returns_json():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"candidates": []})

    body = {"contents": [{"role": "user", "parts": [{"text": "hi"}]}]}
    data = asyncio.run(make_client(handler).generate(body))

    assert data == {"candidates": []}
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-1.5-flash:generateContent"
    assert request.headers["x-goog-api-key"] == "k"
    assert "key" not in request.url.params
    assert json.loads(request.content) == body


def test_non_success_raises_upstream_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text='{"error": "bad request"}')

    with pytest.raises(UpstreamError) as info:
        asyncio.run(make_client(handler).generate({}))

    assert info.value.status == 400
    assert info.value.body == '{"error": "bad request"}'


def test_from_settings_requires_key():
    with pytest.raises(RuntimeError):
        GeminiClient.from_settings(Settings(gemini_api_key=""))


def test_from_settings():
    client = GeminiClient.from_settings(
        Settings(gemini_api_key="abc", gemini_model="gemini-pro", gemini_api_base="https://x.test/v1/")
    )
    assert client.endpoint == "https://x.test/v1/models/gemini-pro:generateContent"
    assert client.api_key == "abc"
