"""Groq chat completions model."""

from __future__ import annotations

import json
from typing import Any

from ai_ox.common.response_format import ResponseFormat
from ai_ox.config import Settings
from ai_ox.models.base import ModelRequest
from ai_ox.models.openai_compat import OpenAICompatibleModel


class GroqModel(OpenAICompatibleModel):
    """
    Groq API model.

    Structured output uses JSON mode, with the target schema described in
    the system prompt.
    """

    provider_name = "groq"
    display_name = "Groq"
    default_model = "llama-3.3-70b-versatile"
    api_key_env = "GROQ_API_KEY"

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.groq_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.groq_base_url

    def _structured_body(self, request: ModelRequest, schema: dict[str, Any]) -> dict[str, Any]:
        body = self._build_body(request)
        instruction = (
            "Respond only with a JSON object matching this JSON schema:\n"
            f"{json.dumps(schema)}"
        )

        messages = body["messages"]
        if messages and messages[0]["role"] == "system":
            messages[0]["content"] = f"{messages[0]['content']}\n\n{instruction}"
        else:
            messages.insert(0, {"role": "system", "content": instruction})

        body["response_format"] = ResponseFormat.json_object().to_dict()
        return body
