"""
Anthropic Messages API model.

Converts unified messages to `/v1/messages` content blocks and parses
both complete responses and the SSE event stream.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from ai_ox.common.errors import StreamError
from ai_ox.common.request_builder import ApiKeyAuth, AuthMethod, BearerAuth, Endpoint
from ai_ox.common.usage import TokenUsage
from ai_ox.config import Settings, get_settings
from ai_ox.content.delta import StreamEvent, StreamStop, TextDelta, ToolCallEvent, UsageEvent
from ai_ox.content.message import Message, MessageRole
from ai_ox.content.part import FilePart, ImagePart, TextPart, ToolResultPart, ToolUsePart
from ai_ox.errors import (
    MessageConversionError,
    NoResponseError,
    ProviderRequestError,
    ResponseParsingError,
)
from ai_ox.models.base import (
    GenerationConfig,
    HttpModel,
    ModelRequest,
    ModelResponse,
    RawStructuredResponse,
)
from ai_ox.models.openai_compat import parse_arguments
from ai_ox.tools.types import Tool, ToolCall
from ai_ox.usage import Usage

logger = logging.getLogger(__name__)

# Anthropic API version
ANTHROPIC_VERSION = "2023-06-01"
OAUTH_BETA = "oauth-2025-04-20"
DEFAULT_MAX_TOKENS = 4096
STRUCTURED_TOOL_NAME = "json_response"

MESSAGES = Endpoint("v1/messages")


def _is_thinking(part: Any) -> bool:
    return isinstance(part, TextPart) and bool(part.ext.get("anthropic", {}).get("thinking"))


def _sendable(part: Any) -> bool:
    """Whether a part is sent; reasoning from other providers is dropped."""
    return _is_thinking(part) or not (isinstance(part, TextPart) and part.is_reasoning)


def _convert_part(part: Any) -> dict[str, Any]:
    if _is_thinking(part):
        block: dict[str, Any] = {"type": "thinking", "thinking": part.text}
        signature = part.ext["anthropic"].get("signature")
        if signature:
            block["signature"] = signature
        return block

    if isinstance(part, TextPart):
        return {"type": "text", "text": part.text}

    if isinstance(part, ImagePart):
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": part.source.media_type,
                "data": part.source.data,
            },
        }

    if isinstance(part, FilePart):
        if part.is_image:
            return {"type": "image", "source": {"type": "url", "url": part.file_uri}}
        if part.mime_type == "application/pdf":
            block = {
                "type": "document",
                "source": {"type": "url", "url": part.file_uri},
            }
            if part.display_name:
                block["title"] = part.display_name
            return block
        raise MessageConversionError(f"Unsupported file type for Anthropic: {part.mime_type}")

    if isinstance(part, ToolUsePart):
        return {"type": "tool_use", "id": part.id, "name": part.name, "input": part.args}

    if isinstance(part, ToolResultPart):
        content = [_convert_part(p) for p in part.parts]
        return {"type": "tool_result", "tool_use_id": part.id, "content": content}

    raise MessageConversionError(f"Unsupported content part: {type(part).__name__}")


def _system_text(messages: list[Message]) -> str | None:
    texts = [m.text for m in messages if m.text]
    return "\n\n".join(texts) if texts else None


def convert_tools(tools: list[Tool]) -> list[dict[str, Any]]:
    return [
        {
            "name": decl.name,
            "description": decl.description or "",
            "input_schema": decl.parameters,
        }
        for t in tools
        for decl in t.function_declarations
    ]


def convert_request(model: str, request: ModelRequest, config: GenerationConfig) -> dict[str, Any]:
    """
    Convert a ModelRequest to a Messages API body.

    System-role messages anywhere in the history are merged into the
    top-level `system` field after the explicit system message.
    """
    system_messages: list[Message] = []
    if request.system_message is not None:
        system_messages.append(request.system_message)

    messages: list[dict[str, Any]] = []
    for message in request.messages:
        if message.role == MessageRole.SYSTEM:
            system_messages.append(message)
            continue
        messages.append(
            {
                "role": message.role.value,
                "content": [_convert_part(p) for p in message.content if _sendable(p)],
            }
        )

    body: dict[str, Any] = {
        "model": model,
        "max_tokens": config.max_tokens or DEFAULT_MAX_TOKENS,
        "messages": messages,
    }

    system = _system_text(system_messages)
    if system:
        body["system"] = system
    if config.temperature is not None:
        body["temperature"] = config.temperature
    if config.top_p is not None:
        body["top_p"] = config.top_p
    if config.stop:
        body["stop_sequences"] = list(config.stop)
    if request.tools:
        tools = convert_tools(request.tools)
        if tools:
            body["tools"] = tools
    return body


def convert_usage(usage: dict[str, Any] | None) -> Usage:
    if not usage:
        return Usage()
    tokens = TokenUsage(
        prompt_tokens=usage.get("input_tokens"),
        completion_tokens=usage.get("output_tokens"),
        cache_creation_tokens=usage.get("cache_creation_input_tokens"),
        cache_read_tokens=usage.get("cache_read_input_tokens"),
    )
    return Usage.from_token_usage(tokens)


def convert_response(data: dict[str, Any], model: str) -> ModelResponse:
    content: list[Any] = []
    for block in data.get("content") or []:
        block_type = block.get("type")
        if block_type == "text":
            content.append(TextPart(text=block.get("text", "")))
        elif block_type == "tool_use":
            content.append(
                ToolUsePart(id=block.get("id", ""), name=block.get("name", ""), args=block.get("input") or {})
            )
        elif block_type == "thinking":
            content.append(
                TextPart(
                    text=block.get("thinking", ""),
                    ext={"anthropic": {"thinking": True, "signature": block.get("signature")}},
                )
            )
        else:
            logger.debug(f"Skipping unsupported content block: {block_type}")

    return ModelResponse(
        message=Message(role=MessageRole.ASSISTANT, content=content),
        model_name=data.get("model") or model,
        vendor_name=AnthropicModel.provider_name,
        usage=convert_usage(data.get("usage")),
        finish_reason=data.get("stop_reason"),
    )


class AnthropicModel(HttpModel):
    """
    Anthropic Claude model.

    Authenticates with an API key (`x-api-key`) or, when only an OAuth
    token is available, with a bearer token plus the OAuth beta header.
    """

    provider_name = "anthropic"
    display_name = "Anthropic"
    default_model = "claude-sonnet-4-5"
    api_key_env = "ANTHROPIC_API_KEY"

    def __init__(
        self,
        model: str | None = None,
        *,
        api_key: str | None = None,
        oauth_token: str | None = None,
        base_url: str | None = None,
        generation_config: GenerationConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            model,
            api_key=api_key,
            base_url=base_url,
            generation_config=generation_config,
            client=client,
        )
        if oauth_token is None and self._api_key is None:
            oauth_token = get_settings().providers.anthropic_oauth_token
        self._oauth_token = oauth_token if not self._api_key else None
        if self._oauth_token:
            self._api_key = self._oauth_token

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.anthropic_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.anthropic_base_url

    @classmethod
    def is_configured_in(cls, settings: Settings) -> bool:
        return bool(settings.providers.anthropic_api_key or settings.providers.anthropic_oauth_token)

    def _auth(self, api_key: str) -> AuthMethod:
        if self._oauth_token:
            return BearerAuth(api_key)
        return ApiKeyAuth("x-api-key", api_key)

    def _default_headers(self) -> dict[str, str]:
        headers = {"anthropic-version": ANTHROPIC_VERSION}
        if self._oauth_token:
            headers["anthropic-beta"] = OAUTH_BETA
        return headers

    def _build_body(self, request: ModelRequest) -> dict[str, Any]:
        return convert_request(self.name, request, self.generation_config)

    async def request(self, request: ModelRequest) -> ModelResponse:
        data = await self._post(MESSAGES, self._build_body(request))
        return convert_response(data, self.name)

    async def request_stream(self, request: ModelRequest) -> AsyncIterator[StreamEvent]:
        usage = Usage(requests=1)
        finish_reason: str | None = None
        # Open tool_use blocks by content index: (id, name, json fragments)
        open_calls: dict[int, tuple[str, str, list[str]]] = {}

        async for event in self._stream(MESSAGES, self._build_body(request)):
            event_type = event.get("type")

            if event_type == "message_start":
                message_usage = (event.get("message") or {}).get("usage") or {}
                usage = convert_usage(message_usage)

            elif event_type == "content_block_start":
                block = event.get("content_block") or {}
                if block.get("type") == "tool_use":
                    open_calls[event.get("index", 0)] = (block.get("id", ""), block.get("name", ""), [])
                elif block.get("type") == "text" and block.get("text"):
                    yield TextDelta(block["text"])

            elif event_type == "content_block_delta":
                delta = event.get("delta") or {}
                if delta.get("type") == "text_delta":
                    yield TextDelta(delta.get("text", ""))
                elif delta.get("type") == "input_json_delta":
                    pending = open_calls.get(event.get("index", 0))
                    if pending is not None:
                        pending[2].append(delta.get("partial_json", ""))

            elif event_type == "content_block_stop":
                pending = open_calls.pop(event.get("index", 0), None)
                if pending is not None:
                    call_id, name, fragments = pending
                    yield ToolCallEvent(ToolCall(id=call_id, name=name, args=parse_arguments("".join(fragments))))

            elif event_type == "message_delta":
                delta = event.get("delta") or {}
                finish_reason = delta.get("stop_reason") or finish_reason
                output = (event.get("usage") or {}).get("output_tokens")
                if output is not None:
                    usage.output_tokens_by_modality["text"] = output
                    yield UsageEvent(usage)

            elif event_type == "error":
                error = event.get("error") or {}
                raise ProviderRequestError(
                    self.provider_name,
                    StreamError(error.get("message") or json.dumps(error)),
                )

        yield StreamStop(usage=usage, finish_reason=finish_reason)

    async def request_structured(
        self, request: ModelRequest, schema: dict[str, Any]
    ) -> RawStructuredResponse:
        body = self._build_body(request)
        body["tools"] = [
            {
                "name": STRUCTURED_TOOL_NAME,
                "description": "Respond with structured output matching the schema.",
                "input_schema": schema,
            }
        ]
        body["tool_choice"] = {"type": "tool", "name": STRUCTURED_TOOL_NAME}

        data = await self._post(MESSAGES, body)
        response = convert_response(data, self.name)

        for part in response.message.tool_uses():
            if part.name == STRUCTURED_TOOL_NAME:
                return RawStructuredResponse(
                    json=part.args,
                    model_name=response.model_name,
                    vendor_name=self.provider_name,
                    usage=response.usage,
                )

        if not response.message.content:
            raise NoResponseError(self.provider_name)
        raise ResponseParsingError(f"Response did not call the {STRUCTURED_TOOL_NAME} tool")
