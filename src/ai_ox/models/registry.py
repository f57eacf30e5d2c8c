"""
Provider registry mapping provider names to model classes.

The registry handles:
- Provider registration and discovery
- Model construction from "provider/model" strings
- Reporting which providers have credentials configured
"""

import logging
from typing import Any

from ai_ox.config import get_settings
from ai_ox.models.anthropic import AnthropicModel
from ai_ox.models.base import HttpModel
from ai_ox.models.gemini import GeminiModel
from ai_ox.models.groq import GroqModel
from ai_ox.models.mistral import MistralModel
from ai_ox.models.openai import OpenAIModel
from ai_ox.models.openrouter import OpenRouterModel

logger = logging.getLogger(__name__)

BUILTIN_PROVIDERS: tuple[type[HttpModel], ...] = (
    AnthropicModel,
    GeminiModel,
    OpenAIModel,
    MistralModel,
    GroqModel,
    OpenRouterModel,
)


class ProviderRegistry:
    """
    Registry of model classes keyed by provider name.

    Constructed empty; `get_registry()` returns a global instance with the
    built-in providers registered.
    """

    def __init__(self):
        """Initialize empty registry."""
        self._providers: dict[str, type[HttpModel]] = {}

    def register(self, name: str, model_cls: type[HttpModel]) -> None:
        """
        Register a model class.

        Args:
            name: Provider name
            model_cls: Model class to construct for this provider

        Raises:
            ValueError: If a provider with same name already exists
        """
        if name in self._providers:
            raise ValueError(f"Provider '{name}' already registered")

        self._providers[name] = model_cls
        logger.debug(f"Registered provider: {name}")

    def unregister(self, name: str) -> None:
        """
        Unregister a provider.

        Args:
            name: Provider name to unregister
        """
        if name in self._providers:
            del self._providers[name]
            logger.debug(f"Unregistered provider: {name}")

    def get(self, name: str) -> type[HttpModel] | None:
        return self._providers.get(name)

    def get_or_raise(self, name: str) -> type[HttpModel]:
        """
        Get a model class by provider name, raising if not found.

        Raises:
            KeyError: If provider not found
        """
        model_cls = self.get(name)
        if model_cls is None:
            raise KeyError(f"Provider '{name}' not found")
        return model_cls

    def list_providers(self) -> list[str]:
        return list(self._providers)

    def list_configured(self) -> list[str]:
        """List providers whose credentials are present in settings."""
        settings = get_settings()
        return [name for name, cls in self._providers.items() if cls.is_configured_in(settings)]

    def create(self, spec: str, **kwargs: Any) -> HttpModel:
        """
        Build a model from a "provider/model" string.

        The model part may itself contain slashes (OpenRouter model names),
        and may be omitted to use the provider's default model.

        Args:
            spec: e.g. "anthropic/claude-sonnet-4-5" or "gemini"
            **kwargs: Passed to the model constructor

        Raises:
            KeyError: If the provider is not registered
        """
        provider, _, model = spec.partition("/")
        model_cls = self.get_or_raise(provider)
        return model_cls(model or None, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        """
        Get registry state as dictionary.

        Returns:
            Dictionary with provider information
        """
        settings = get_settings()
        return {
            "providers": {
                name: {
                    "display_name": cls.display_name,
                    "default_model": cls.default_model,
                    "base_url": cls.base_url_from_settings(settings),
                    "configured": cls.is_configured_in(settings),
                }
                for name, cls in self._providers.items()
            },
            "total": len(self._providers),
            "configured": len(self.list_configured()),
        }


# Global registry instance
_registry: ProviderRegistry | None = None


def get_registry() -> ProviderRegistry:
    """
    Get the global provider registry, registering built-in providers on first use.

    Returns:
        Global registry instance
    """
    global _registry
    if _registry is None:
        _registry = ProviderRegistry()
        for model_cls in BUILTIN_PROVIDERS:
            _registry.register(model_cls.provider_name, model_cls)
    return _registry


def reset_registry() -> None:
    """Reset the global registry (for testing)."""
    global _registry
    _registry = None
