"""OpenAI chat completions model."""

from __future__ import annotations

from typing import Any

from ai_ox.config import Settings
from ai_ox.models.openai_compat import OpenAICompatibleModel


class OpenAIModel(OpenAICompatibleModel):
    """
    OpenAI API model.

    Streaming requests ask for a final usage chunk via `stream_options`.
    """

    provider_name = "openai"
    display_name = "OpenAI"
    default_model = "gpt-4.1-mini"
    api_key_env = "OPENAI_API_KEY"

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.openai_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.openai_base_url

    def _prepare_stream_body(self, body: dict[str, Any]) -> dict[str, Any]:
        body["stream_options"] = {"include_usage": True}
        return body
