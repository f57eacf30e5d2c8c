"""
OpenAI Chat Completions format shared by OpenAI, Mistral, Groq and OpenRouter.

Converts ModelRequests to `/chat/completions` bodies and responses and
stream chunks back to the unified message model.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from ai_ox.common.request_builder import AuthMethod, BearerAuth, Endpoint
from ai_ox.common.response_format import ResponseFormat
from ai_ox.common.usage import TokenUsage
from ai_ox.content.delta import StreamEvent, StreamStop, TextDelta, ToolCallEvent, UsageEvent
from ai_ox.content.message import Message, MessageRole
from ai_ox.content.part import FilePart, ImagePart, TextPart, ToolResultPart, ToolUsePart
from ai_ox.errors import MessageConversionError, NoResponseError, ResponseParsingError
from ai_ox.models.base import HttpModel, ModelRequest, ModelResponse, RawStructuredResponse
from ai_ox.tools.types import Tool, ToolCall
from ai_ox.usage import Usage

logger = logging.getLogger(__name__)

CHAT_COMPLETIONS = Endpoint("chat/completions")


def parse_arguments(arguments: str | None) -> dict[str, Any]:
    """Decode tool-call arguments, keeping undecodable input under `raw`."""
    if not arguments:
        return {}
    try:
        value = json.loads(arguments)
    except json.JSONDecodeError:
        return {"raw": arguments}
    if not isinstance(value, dict):
        return {"raw": arguments}
    return value


def tool_result_content(part: ToolResultPart) -> str:
    """Text of a tool result, or the JSON of its parts if it has no text."""
    text = part.text
    if text is not None:
        return text
    return json.dumps([p.model_dump(mode="json") for p in part.parts])


def _without_reasoning(parts: list[Any]) -> list[Any]:
    return [p for p in parts if not (isinstance(p, TextPart) and p.is_reasoning)]


def _joined_text(message: Message) -> str:
    return "\n".join(
        p.text for p in message.content if isinstance(p, TextPart) and not p.is_reasoning
    )


def _convert_content_part(part: TextPart | ImagePart | FilePart) -> dict[str, Any]:
    if isinstance(part, TextPart):
        return {"type": "text", "text": part.text}
    if isinstance(part, ImagePart):
        return {
            "type": "image_url",
            "image_url": {"url": f"data:{part.source.media_type};base64,{part.source.data}"},
        }
    if part.is_image:
        return {"type": "image_url", "image_url": {"url": part.file_uri}}
    raise MessageConversionError(f"Unsupported file type for chat completions: {part.mime_type}")


def convert_message(message: Message) -> list[dict[str, Any]]:
    """
    Convert one message into chat completion messages.

    Tool results fan out into one `tool` message each, so a single
    message may produce several entries. Any other user content from the
    same message comes after the `tool` messages.
    Reasoning parts are not sent.
    """
    role = message.role.value
    parts = _without_reasoning(message.content)

    if (
        parts
        and all(isinstance(p, TextPart) for p in parts)
        and message.role != MessageRole.ASSISTANT
    ):
        return [{"role": role, "content": _joined_text(message)}]

    converted: list[dict[str, Any]] = []
    content: list[dict[str, Any]] = []
    tool_calls: list[dict[str, Any]] = []

    for part in parts:
        if isinstance(part, ToolResultPart):
            converted.append(
                {
                    "role": "tool",
                    "tool_call_id": part.id,
                    "content": tool_result_content(part),
                }
            )
        elif isinstance(part, ToolUsePart):
            tool_calls.append(
                {
                    "id": part.id,
                    "type": "function",
                    "function": {"name": part.name, "arguments": json.dumps(part.args)},
                }
            )
        else:
            content.append(_convert_content_part(part))

    if message.role == MessageRole.ASSISTANT:
        if content or tool_calls:
            texts = [c["text"] for c in content if c["type"] == "text"]
            entry: dict[str, Any] = {"role": "assistant", "content": "".join(texts) or None}
            if tool_calls:
                entry["tool_calls"] = tool_calls
            converted.insert(0, entry)
    elif content:
        converted.append({"role": role, "content": content})

    return converted


def convert_tools(tools: list[Tool]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": decl.name,
                "description": decl.description or "",
                "parameters": decl.parameters,
            },
        }
        for t in tools
        for decl in t.function_declarations
    ]


def convert_request(model: str, request: ModelRequest) -> dict[str, Any]:
    """
    Convert a ModelRequest to a chat completions body.

    Args:
        model: Provider model name
        request: Unified request

    Returns:
        Request body without generation parameters
    """
    messages: list[dict[str, Any]] = []

    if request.system_message is not None:
        messages.append({"role": "system", "content": _joined_text(request.system_message)})

    for message in request.messages:
        messages.extend(convert_message(message))

    body: dict[str, Any] = {"model": model, "messages": messages}
    if request.tools:
        tools = convert_tools(request.tools)
        if tools:
            body["tools"] = tools
    return body


def convert_usage(usage: dict[str, Any] | None) -> Usage:
    if not usage:
        return Usage()
    prompt_details = usage.get("prompt_tokens_details") or {}
    completion_details = usage.get("completion_tokens_details") or {}
    tokens = TokenUsage(
        prompt_tokens=usage.get("prompt_tokens"),
        completion_tokens=usage.get("completion_tokens"),
        total_tokens=usage.get("total_tokens"),
        cache_read_tokens=prompt_details.get("cached_tokens"),
        reasoning_tokens=completion_details.get("reasoning_tokens"),
    )
    return Usage.from_token_usage(tokens)


def convert_response(data: dict[str, Any], model: str, vendor: str) -> ModelResponse:
    """
    Convert a chat completions response to a ModelResponse.

    Raises:
        NoResponseError: If the response has no choices
    """
    choices = data.get("choices") or []
    if not choices:
        raise NoResponseError(vendor)

    choice = choices[0]
    message = choice.get("message") or {}
    content: list[Any] = []

    text = message.get("content")
    if isinstance(text, str) and text:
        content.append(TextPart(text=text))

    for tc in message.get("tool_calls") or []:
        func = tc.get("function") or {}
        content.append(
            ToolUsePart(
                id=tc.get("id", ""),
                name=func.get("name", ""),
                args=parse_arguments(func.get("arguments")),
            )
        )

    return ModelResponse(
        message=Message(role=MessageRole.ASSISTANT, content=content),
        model_name=data.get("model") or model,
        vendor_name=vendor,
        usage=convert_usage(data.get("usage")),
        finish_reason=choice.get("finish_reason"),
    )


@dataclass
class _PendingToolCall:
    id: str = ""
    name: str = ""
    arguments: list[str] = field(default_factory=list)

    def to_call(self) -> ToolCall:
        return ToolCall(id=self.id, name=self.name, args=parse_arguments("".join(self.arguments)))


class ToolCallAccumulator:
    """Collects streamed tool-call fragments keyed by their index."""

    def __init__(self) -> None:
        self._pending: dict[int, _PendingToolCall] = {}

    def add(self, fragment: dict[str, Any]) -> None:
        index = fragment.get("index", len(self._pending))
        pending = self._pending.setdefault(index, _PendingToolCall())
        if fragment.get("id"):
            pending.id = fragment["id"]
        func = fragment.get("function") or {}
        if func.get("name"):
            pending.name = func["name"]
        if func.get("arguments"):
            pending.arguments.append(func["arguments"])

    def drain(self) -> list[ToolCall]:
        calls = [self._pending[i].to_call() for i in sorted(self._pending)]
        self._pending.clear()
        return calls


async def convert_stream(chunks: AsyncIterator[Any]) -> AsyncIterator[StreamEvent]:
    """Convert chat completion chunks into stream events, ending with StreamStop."""
    accumulator = ToolCallAccumulator()
    usage = Usage()
    finish_reason: str | None = None

    async for chunk in chunks:
        if not isinstance(chunk, dict):
            raise ResponseParsingError(f"Unexpected stream chunk: {chunk!r}")

        if chunk.get("usage"):
            usage = convert_usage(chunk["usage"])
            yield UsageEvent(usage)

        for choice in chunk.get("choices") or []:
            delta = choice.get("delta") or {}
            if delta.get("content"):
                yield TextDelta(delta["content"])
            for fragment in delta.get("tool_calls") or []:
                accumulator.add(fragment)

            if choice.get("finish_reason"):
                finish_reason = choice["finish_reason"]
                for call in accumulator.drain():
                    yield ToolCallEvent(call)

    for call in accumulator.drain():
        yield ToolCallEvent(call)

    yield StreamStop(usage=usage, finish_reason=finish_reason)


class OpenAICompatibleModel(HttpModel):
    """
    Base class for providers speaking the OpenAI chat completions format.

    Subclasses set the provider metadata and settings lookups and may
    override `_structured_body` or `_prepare_stream_body`.
    """

    def _auth(self, api_key: str) -> AuthMethod:
        return BearerAuth(api_key)

    def _build_body(self, request: ModelRequest) -> dict[str, Any]:
        body = convert_request(self.name, request)
        self._apply_generation_config(body)
        return body

    def _prepare_stream_body(self, body: dict[str, Any]) -> dict[str, Any]:
        return body

    def _structured_body(self, request: ModelRequest, schema: dict[str, Any]) -> dict[str, Any]:
        body = self._build_body(request)
        body["response_format"] = ResponseFormat.from_json_schema(
            {"name": "response", "schema": schema, "strict": False}
        ).to_dict()
        return body

    async def request(self, request: ModelRequest) -> ModelResponse:
        data = await self._post(CHAT_COMPLETIONS, self._build_body(request))
        return convert_response(data, self.name, self.provider_name)

    async def request_stream(self, request: ModelRequest) -> AsyncIterator[StreamEvent]:
        body = self._prepare_stream_body(self._build_body(request))
        async for event in convert_stream(self._stream(CHAT_COMPLETIONS, body)):
            yield event

    async def request_structured(
        self, request: ModelRequest, schema: dict[str, Any]
    ) -> RawStructuredResponse:
        data = await self._post(CHAT_COMPLETIONS, self._structured_body(request, schema))
        response = convert_response(data, self.name, self.provider_name)

        text = response.text
        if not text:
            raise NoResponseError(self.provider_name)
        try:
            value = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseParsingError(f"Structured output is not valid JSON: {e}") from e

        return RawStructuredResponse(
            json=value,
            model_name=response.model_name,
            vendor_name=self.provider_name,
            usage=response.usage,
        )
