"""
Errors raised by the model layer.

Transport and API failures from `ai_ox.common` are wrapped in
`ProviderRequestError` so callers only need to catch `GenerateContentError`.
"""

from __future__ import annotations

from ai_ox.common.errors import ProviderError


class GenerateContentError(Exception):
    """Base class for failures while generating content."""


class ProviderRequestError(GenerateContentError):
    """The provider call failed at the transport or API level."""

    def __init__(self, provider: str, error: ProviderError):
        super().__init__(f"{provider} request failed: {error}")
        self.provider = provider
        self.error = error

    @property
    def status_code(self) -> int | None:
        return getattr(self.error, "status_code", None)


class ResponseParsingError(GenerateContentError):
    """The provider response could not be converted."""


class NoResponseError(GenerateContentError):
    """The provider returned no candidates or choices."""

    def __init__(self, provider: str):
        super().__init__(f"{provider} returned no response")
        self.provider = provider


class UnsupportedFeatureError(GenerateContentError):
    """The model does not support the requested feature."""

    def __init__(self, feature: str, model: str | None = None):
        message = f"Unsupported feature: {feature}"
        if model:
            message = f"{message} (model: {model})"
        super().__init__(message)
        self.feature = feature
        self.model = model


class MessageConversionError(GenerateContentError):
    """A message contains content the provider cannot represent."""


class MissingApiKeyError(GenerateContentError):
    """No API key was supplied or configured for a provider."""

    def __init__(self, provider: str, env_var: str):
        super().__init__(f"Missing API key for {provider}: set {env_var} or pass api_key")
        self.provider = provider
        self.env_var = env_var
