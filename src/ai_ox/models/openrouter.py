"""OpenRouter chat completions model."""

from __future__ import annotations

import httpx

from ai_ox.config import Settings
from ai_ox.models.base import GenerationConfig
from ai_ox.models.openai_compat import OpenAICompatibleModel


class OpenRouterModel(OpenAICompatibleModel):
    """
    OpenRouter API model.

    OpenRouter uses the optional `HTTP-Referer` and `X-Title` headers to
    attribute traffic to an application.
    """

    provider_name = "openrouter"
    display_name = "OpenRouter"
    default_model = "openai/gpt-4.1-mini"
    api_key_env = "OPENROUTER_API_KEY"

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        generation_config: GenerationConfig | None = None,
        client: httpx.AsyncClient | None = None,
        http_referer: str | None = None,
        app_title: str | None = None,
    ):
        super().__init__(
            model,
            api_key=api_key,
            base_url=base_url,
            generation_config=generation_config,
            client=client,
        )
        self.http_referer = http_referer
        self.app_title = app_title

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.openrouter_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.openrouter_base_url

    def _default_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.http_referer:
            headers["HTTP-Referer"] = self.http_referer
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers
