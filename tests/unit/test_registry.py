"""Tests for the provider registry."""

import pytest

from ai_ox.models import (
    AnthropicModel,
    GeminiModel,
    GroqModel,
    OpenAIModel,
    OpenRouterModel,
    ProviderRegistry,
    get_registry,
)


class TestProviderRegistry:
    """Tests for registry bookkeeping."""

    def test_register_and_get(self):
        """Should return registered classes by name."""
        registry = ProviderRegistry()
        registry.register("openai", OpenAIModel)

        assert registry.get("openai") is OpenAIModel
        assert registry.get("missing") is None
        assert registry.list_providers() == ["openai"]

    def test_duplicate_registration(self):
        """Should refuse to register a name twice."""
        registry = ProviderRegistry()
        registry.register("openai", OpenAIModel)

        with pytest.raises(ValueError, match="already registered"):
            registry.register("openai", OpenAIModel)

    def test_unregister(self):
        """Should remove providers and ignore unknown names."""
        registry = ProviderRegistry()
        registry.register("openai", OpenAIModel)

        registry.unregister("openai")
        registry.unregister("openai")

        assert registry.list_providers() == []

    def test_get_or_raise(self):
        """Should raise KeyError for unknown providers."""
        with pytest.raises(KeyError, match="Provider 'nope' not found"):
            ProviderRegistry().get_or_raise("nope")


class TestGlobalRegistry:
    """Tests for the global registry with built-in providers."""

    def test_builtin_providers(self):
        """Should register every built-in provider."""
        assert get_registry().list_providers() == [
            "anthropic",
            "gemini",
            "openai",
            "mistral",
            "groq",
            "openrouter",
        ]

    def test_singleton(self):
        """Should return the same instance on repeated calls."""
        assert get_registry() is get_registry()

    def test_create_with_model(self):
        """Should build a model from provider/model."""
        model = get_registry().create("anthropic/claude-opus-4-1", api_key="k")

        assert isinstance(model, AnthropicModel)
        assert model.name == "claude-opus-4-1"

    def test_create_default_model(self):
        """Should use the provider's default model when none is given."""
        model = get_registry().create("gemini", api_key="k")

        assert isinstance(model, GeminiModel)
        assert model.name == GeminiModel.default_model

    def test_create_keeps_nested_slashes(self):
        """Should keep slashes inside the model name."""
        model = get_registry().create("openrouter/meta-llama/llama-3.3-70b-instruct", api_key="k")

        assert isinstance(model, OpenRouterModel)
        assert model.name == "meta-llama/llama-3.3-70b-instruct"

    def test_create_unknown_provider(self):
        """Should raise KeyError for unknown providers."""
        with pytest.raises(KeyError):
            get_registry().create("acme/model-1")

    def test_configured_providers(self, monkeypatch):
        """Should list providers with credentials in the environment."""
        monkeypatch.setenv("GROQ_API_KEY", "gk")

        registry = get_registry()

        assert registry.list_configured() == ["groq"]
        info = registry.to_dict()
        assert info["total"] == 6
        assert info["configured"] == 1
        assert info["providers"]["groq"] == {
            "display_name": GroqModel.display_name,
            "default_model": "llama-3.3-70b-versatile",
            "base_url": "https://api.groq.com/openai/v1",
            "configured": True,
        }
