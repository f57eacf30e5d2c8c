"""
Base model interface and request/response types.

All providers implement the Model abstract class. Providers that talk
HTTP derive from HttpModel, which owns credential lookup, the shared
RequestBuilder and the mapping of transport errors onto ai_ox.errors.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterable
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, TypeVar

import httpx

from ai_ox.common.errors import ProviderError
from ai_ox.common.request_builder import (
    AuthMethod,
    Endpoint,
    RequestBuilder,
    RequestConfig,
    StreamOptions,
)
from ai_ox.common.retry import RetryPolicy
from ai_ox.config import Settings, get_settings
from ai_ox.content.delta import StreamEvent
from ai_ox.content.message import Message, to_messages
from ai_ox.errors import MissingApiKeyError, ProviderRequestError, UnsupportedFeatureError
from ai_ox.tools.types import Tool, ToolCall
from ai_ox.usage import Usage

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ModelInfo:
    """Provider and model name pair."""

    provider: str
    model: str

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


@dataclass
class GenerationConfig:
    """Sampling parameters applied to every request of a model."""

    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    stop: list[str] | None = None


@dataclass
class ModelRequest:
    """A provider-agnostic generation request."""

    messages: list[Message]
    system_message: Message | None = None
    tools: list[Tool] | None = None

    @classmethod
    def from_messages(
        cls,
        items: Iterable[Message | str | dict[str, Any]] | Message | str,
        system_message: Message | str | None = None,
        tools: list[Tool] | None = None,
    ) -> ModelRequest:
        if isinstance(system_message, str):
            system_message = Message.system(system_message)
        return cls(messages=to_messages(items), system_message=system_message, tools=tools)


@dataclass
class ModelResponse:
    """The assistant message produced by one model call."""

    message: Message
    model_name: str
    vendor_name: str
    usage: Usage = field(default_factory=Usage)
    finish_reason: str | None = None

    @property
    def text(self) -> str | None:
        return self.message.text

    def tool_calls(self) -> list[ToolCall] | None:
        """Tool calls requested by the model, or None if there are none."""
        calls = [ToolCall.from_part(p) for p in self.message.tool_uses()]
        return calls or None


@dataclass
class StructuredResponse(Generic[T]):
    """Typed structured output."""

    data: T
    model_name: str
    vendor_name: str
    usage: Usage = field(default_factory=Usage)


@dataclass
class RawStructuredResponse:
    """Untyped structured output as decoded JSON."""

    json: Any
    model_name: str
    vendor_name: str
    usage: Usage = field(default_factory=Usage)


class Model(ABC):
    """
    Abstract base class for model implementations.

    Subclasses must implement:
    - name: Model identifier
    - info: Provider metadata
    - request: Single completion
    - request_stream: Streaming completion
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Model identifier sent to the provider."""
        pass

    @property
    @abstractmethod
    def info(self) -> ModelInfo:
        pass

    @abstractmethod
    async def request(self, request: ModelRequest) -> ModelResponse:
        """
        Send a request and wait for the complete response.

        Args:
            request: Messages, system message and tools

        Returns:
            The assistant message with usage
        """
        pass

    @abstractmethod
    def request_stream(self, request: ModelRequest) -> AsyncIterator[StreamEvent]:
        """
        Send a request and stream the response.

        The stream always ends with a StreamStop event.
        """
        pass

    async def request_structured(
        self, request: ModelRequest, schema: dict[str, Any]
    ) -> RawStructuredResponse:
        """
        Request output conforming to a JSON schema.

        Args:
            request: The request
            schema: JSON schema of the expected output

        Raises:
            UnsupportedFeatureError: If the model has no structured output mode
        """
        raise UnsupportedFeatureError("structured output", self.name)

    async def aclose(self) -> None:
        """Release network resources."""
        pass

    async def __aenter__(self) -> Model:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.info}>"


class HttpModel(Model):
    """
    Model backed by a provider HTTP API.

    Credentials and base URLs default to ai_ox.config settings. A missing
    API key is reported on the first request, so models can be constructed
    before credentials are available.
    """

    provider_name: ClassVar[str] = ""
    display_name: ClassVar[str] = ""
    default_model: ClassVar[str] = ""
    api_key_env: ClassVar[str] = ""

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        generation_config: GenerationConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the model.

        Args:
            model: Model name, defaults to the provider's default model
            api_key: API key, defaults to the configured key
            base_url: API base URL, defaults to the configured URL
            generation_config: Sampling parameters
            client: Shared HTTP client; not closed by this model
        """
        settings = get_settings()
        self._model = model or self.default_model
        self._api_key = api_key or self.api_key_from_settings(settings)
        self._base_url = (base_url or self.base_url_from_settings(settings)).rstrip("/")
        self.generation_config = generation_config or GenerationConfig()
        self._client = client
        self._builder: RequestBuilder | None = None

    @classmethod
    @abstractmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        pass

    @classmethod
    @abstractmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        pass

    @classmethod
    def is_configured_in(cls, settings: Settings) -> bool:
        return bool(cls.api_key_from_settings(settings))

    @abstractmethod
    def _auth(self, api_key: str) -> AuthMethod:
        pass

    def _default_headers(self) -> dict[str, str]:
        return {}

    @property
    def name(self) -> str:
        return self._model

    @property
    def info(self) -> ModelInfo:
        return ModelInfo(provider=self.provider_name, model=self._model)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def builder(self) -> RequestBuilder:
        """The request builder, created on first use."""
        if self._builder is None:
            if not self._api_key:
                raise MissingApiKeyError(self.provider_name, self.api_key_env)

            http = get_settings().http
            config = RequestConfig(
                base_url=self._base_url,
                auth=self._auth(self._api_key),
                default_headers=self._default_headers(),
                user_agent=http.user_agent,
                timeout=httpx.Timeout(http.timeout, connect=http.connect_timeout),
                debug=http.debug,
            )
            if http.max_retries > 0:
                config.with_retry(
                    RetryPolicy(
                        max_retries=http.max_retries,
                        retry_delay_ms=http.retry_delay_ms,
                        max_retry_delay_ms=http.max_retry_delay_ms,
                    )
                )
            self._builder = RequestBuilder(config, client=self._client)
        return self._builder

    async def _post(self, endpoint: Endpoint, body: dict[str, Any]) -> Any:
        """POST a JSON body, wrapping transport and API errors."""
        builder = self.builder
        logger.debug(f"{self.info} request to {endpoint.path}")
        try:
            return await builder.request_json(endpoint, body)
        except ProviderError as e:
            logger.debug(f"{self.info} request failed: {e}")
            raise ProviderRequestError(self.provider_name, e) from e

    async def _stream(
        self,
        endpoint: Endpoint,
        body: dict[str, Any],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[Any]:
        """Stream SSE payloads, wrapping transport and API errors."""
        builder = self.builder
        logger.debug(f"{self.info} stream to {endpoint.path}")
        try:
            async for event in builder.stream(endpoint, body, options):
                yield event
        except ProviderError as e:
            logger.debug(f"{self.info} stream failed: {e}")
            raise ProviderRequestError(self.provider_name, e) from e

    def _apply_generation_config(self, body: dict[str, Any]) -> None:
        """Copy set generation fields using OpenAI-style names."""
        config = self.generation_config
        if config.max_tokens is not None:
            body["max_tokens"] = config.max_tokens
        if config.temperature is not None:
            body["temperature"] = config.temperature
        if config.top_p is not None:
            body["top_p"] = config.top_p
        if config.stop:
            body["stop"] = list(config.stop)

    async def aclose(self) -> None:
        if self._builder is not None:
            await self._builder.aclose()
            self._builder = None
