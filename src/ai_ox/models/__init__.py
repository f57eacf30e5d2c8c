"""
ai_ox.models - Model abstraction and provider implementations.

Each provider converts the unified request/response types to its own
HTTP API through the shared RequestBuilder.
"""

from ai_ox.models.anthropic import AnthropicModel
from ai_ox.models.base import (
    GenerationConfig,
    HttpModel,
    Model,
    ModelInfo,
    ModelRequest,
    ModelResponse,
    RawStructuredResponse,
    StructuredResponse,
)
from ai_ox.models.gemini import GeminiModel
from ai_ox.models.groq import GroqModel
from ai_ox.models.mistral import MistralModel
from ai_ox.models.openai import OpenAIModel
from ai_ox.models.openai_compat import OpenAICompatibleModel
from ai_ox.models.openrouter import OpenRouterModel
from ai_ox.models.registry import ProviderRegistry, get_registry, reset_registry

__all__ = [
    # Base
    "GenerationConfig",
    "HttpModel",
    "Model",
    "ModelInfo",
    "ModelRequest",
    "ModelResponse",
    "RawStructuredResponse",
    "StructuredResponse",
    # Providers
    "AnthropicModel",
    "GeminiModel",
    "GroqModel",
    "MistralModel",
    "OpenAICompatibleModel",
    "OpenAIModel",
    "OpenRouterModel",
    # Registry
    "ProviderRegistry",
    "get_registry",
    "reset_registry",
]
