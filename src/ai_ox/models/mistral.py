"""Mistral chat completions model."""

from __future__ import annotations

from ai_ox.config import Settings
from ai_ox.models.openai_compat import OpenAICompatibleModel


class MistralModel(OpenAICompatibleModel):
    """Mistral AI API model."""

    provider_name = "mistral"
    display_name = "Mistral AI"
    default_model = "mistral-small-latest"
    api_key_env = "MISTRAL_API_KEY"

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.mistral_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.mistral_base_url
