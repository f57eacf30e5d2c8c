"""Shared fixtures for ai-ox tests."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from ai_ox.config import get_settings
from ai_ox.models.registry import reset_registry

PROVIDER_ENV_VARS = (
    "ANTHROPIC_API_KEY",
    "ANTHROPIC_OAUTH_TOKEN",
    "GEMINI_API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_API_KEY",
    "MISTRAL_API_KEY",
    "GROQ_API_KEY",
    "OPENROUTER_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Run every test without provider credentials, retries or a .env file."""
    monkeypatch.chdir(tmp_path)
    for var in PROVIDER_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("AOX_HTTP_MAX_RETRIES", "0")
    get_settings.cache_clear()
    reset_registry()
    yield
    get_settings.cache_clear()
    reset_registry()


class RecordingTransport:
    """Collects requests sent through an httpx.MockTransport."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)


@pytest.fixture
def make_client():
    """Factory for an AsyncClient backed by a recording mock transport."""

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
    ) -> tuple[httpx.AsyncClient, RecordingTransport]:
        recorder = RecordingTransport(handler)
        return httpx.AsyncClient(transport=httpx.MockTransport(recorder)), recorder

    return factory


def sse_body(*events: Any, done: bool = False) -> bytes:
    """Encode payloads as an SSE response body."""
    chunks = [f"data: {json.dumps(event)}\n\n" for event in events]
    if done:
        chunks.append("data: [DONE]\n\n")
    return "".join(chunks).encode()


@pytest.fixture
def sse():
    """The SSE body encoder."""
    return sse_body
