"""Tests for the ai-ox command line."""

import logging

import httpx
import pytest
from typer.testing import CliRunner

from ai_ox.cli.main import app, console
from ai_ox.models.base import HttpModel

runner = CliRunner()


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep table cells on one line."""
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def mock_openai(monkeypatch):
    """Route OpenAI model traffic through a mock transport."""
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "model": "gpt-4.1-mini",
                "choices": [
                    {"index": 0, "message": {"role": "assistant", "content": "Pong"}, "finish_reason": "stop"}
                ],
                "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
            },
        )

    original_init = HttpModel.__init__

    def init_with_mock(self, *args, **kwargs):
        kwargs.setdefault("client", httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        original_init(self, *args, **kwargs)

    monkeypatch.setattr(HttpModel, "__init__", init_with_mock)


class TestChat:
    """Tests for the chat command."""

    def test_non_streaming(self, mock_openai):
        """Should print the reply and token usage."""
        result = runner.invoke(app, ["chat", "Ping", "--no-stream"])

        assert result.exit_code == 0
        assert "Pong" in result.stdout
        assert "Tokens: 3 in / 1 out" in result.stdout

    def test_unknown_provider(self):
        """Should exit with an error for unknown providers."""
        result = runner.invoke(app, ["chat", "Ping", "--model", "acme/x"])

        assert result.exit_code == 1
        assert "Provider 'acme' not found" in result.stdout

    def test_missing_api_key(self):
        """Should exit with an error when credentials are missing."""
        result = runner.invoke(app, ["chat", "Ping", "--model", "groq", "--no-stream"])

        assert result.exit_code == 1
        assert "GROQ_API_KEY" in result.stdout

    def test_log_level_defaults_to_settings(self, mock_openai, monkeypatch):
        """Should configure logging at the configured level."""
        levels = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))
        monkeypatch.setenv("AOX_LOG_LEVEL", "DEBUG")

        result = runner.invoke(app, ["chat", "Ping", "--no-stream"])

        assert result.exit_code == 0
        assert levels == [logging.DEBUG]

    def test_log_level_option_overrides_settings(self, mock_openai, monkeypatch):
        """Should prefer an explicit --log-level."""
        levels = []
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))

        result = runner.invoke(app, ["chat", "Ping", "--no-stream", "--log-level", "error"])

        assert result.exit_code == 0
        assert levels == [logging.ERROR]


class TestProviders:
    """Tests for the providers command."""

    def test_lists_providers(self, monkeypatch):
        """Should list every provider and the configured count."""
        monkeypatch.setenv("MISTRAL_API_KEY", "mk")

        result = runner.invoke(app, ["providers"])

        assert result.exit_code == 0
        for name in ("anthropic", "gemini", "openai", "mistral", "groq", "openrouter"):
            assert name in result.stdout
        assert "1 of 6 configured" in result.stdout


class TestConfig:
    """Tests for the config command."""

    def test_show(self):
        """Should print settings as JSON."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert '"max_iterations": 12' in result.stdout

    def test_init_creates_file(self, tmp_path):
        """Should write a default config file once."""
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0
        assert (tmp_path / "config.yaml").exists()

        again = runner.invoke(app, ["config", "init"])
        assert "already exists" in again.stdout

    def test_unknown_action(self):
        """Should fail for unknown actions."""
        result = runner.invoke(app, ["config", "explode"])

        assert result.exit_code == 1
        assert "Unknown action" in result.stdout


class TestVersion:
    """Tests for the version command."""

    def test_version(self):
        """Should print the package version."""
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 0
        assert "ai-ox version 0.1.0" in result.stdout
