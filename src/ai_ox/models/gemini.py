"""
Google Gemini generateContent model.

Converts unified messages to Gemini `contents` and parses responses and
the SSE stream returned by `:streamGenerateContent?alt=sse`.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import AsyncIterator
from typing import Any

from ai_ox.common.request_builder import ApiKeyAuth, AuthMethod, Endpoint, HttpMethod, StreamOptions
from ai_ox.common.usage import TokenUsage
from ai_ox.config import Settings
from ai_ox.content.delta import StreamEvent, StreamStop, TextDelta, ToolCallEvent, UsageEvent
from ai_ox.content.message import Message, MessageRole
from ai_ox.content.part import FilePart, ImagePart, TextPart, ToolResultPart, ToolUsePart
from ai_ox.errors import MessageConversionError, NoResponseError, ResponseParsingError
from ai_ox.models.base import HttpModel, ModelRequest, ModelResponse, RawStructuredResponse
from ai_ox.models.openai_compat import tool_result_content
from ai_ox.tools.schema import clean_json_schema
from ai_ox.tools.types import Tool, ToolCall
from ai_ox.usage import Usage

logger = logging.getLogger(__name__)


def _call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def _sendable(part: Any) -> bool:
    """Whether a part is sent; reasoning from other providers is dropped."""
    if isinstance(part, TextPart) and part.is_reasoning:
        return bool(part.ext.get("gemini", {}).get("thought"))
    return True


def _convert_part(part: Any) -> dict[str, Any]:
    if isinstance(part, TextPart):
        gemini = part.ext.get("gemini", {})
        text: dict[str, Any] = {"text": part.text}
        if gemini.get("thought"):
            text["thought"] = True
        if gemini.get("thoughtSignature"):
            text["thoughtSignature"] = gemini["thoughtSignature"]
        return text
    if isinstance(part, ImagePart):
        return {"inlineData": {"mimeType": part.source.media_type, "data": part.source.data}}
    if isinstance(part, FilePart):
        return {"fileData": {"mimeType": part.mime_type, "fileUri": part.file_uri}}
    if isinstance(part, ToolUsePart):
        converted: dict[str, Any] = {
            "functionCall": {"id": part.id, "name": part.name, "args": part.args}
        }
        signature = part.ext.get("gemini", {}).get("thoughtSignature")
        if signature:
            converted["thoughtSignature"] = signature
        return converted
    if isinstance(part, ToolResultPart):
        return {
            "functionResponse": {
                "id": part.id,
                "name": part.name,
                "response": {"content": tool_result_content(part)},
            }
        }
    raise MessageConversionError(f"Unsupported content part: {type(part).__name__}")


def convert_tools(tools: list[Tool]) -> list[dict[str, Any]]:
    """Convert tools to Gemini function declarations with cleaned schemas."""
    declarations = []
    for t in tools:
        for decl in t.function_declarations:
            entry: dict[str, Any] = {"name": decl.name, "description": decl.description or ""}
            if decl.parameters.get("properties"):
                entry["parameters"] = clean_json_schema(decl.parameters)
            declarations.append(entry)
    return [{"functionDeclarations": declarations}] if declarations else []


def convert_request(request: ModelRequest, generation: dict[str, Any]) -> dict[str, Any]:
    system_texts: list[str] = []
    if request.system_message is not None and request.system_message.text:
        system_texts.append(request.system_message.text)

    contents: list[dict[str, Any]] = []
    for message in request.messages:
        if message.role == MessageRole.SYSTEM:
            if message.text:
                system_texts.append(message.text)
            continue
        role = "model" if message.role == MessageRole.ASSISTANT else "user"
        parts = [_convert_part(p) for p in message.content if _sendable(p)]
        if parts:
            contents.append({"role": role, "parts": parts})

    body: dict[str, Any] = {"contents": contents}
    if system_texts:
        body["systemInstruction"] = {"parts": [{"text": "\n\n".join(system_texts)}]}
    if generation:
        body["generationConfig"] = dict(generation)
    if request.tools:
        tools = convert_tools(request.tools)
        if tools:
            body["tools"] = tools
    return body


def convert_usage(metadata: dict[str, Any] | None) -> Usage:
    if not metadata:
        return Usage()
    tokens = TokenUsage(
        prompt_tokens=metadata.get("promptTokenCount"),
        completion_tokens=metadata.get("candidatesTokenCount"),
        total_tokens=metadata.get("totalTokenCount"),
        cache_read_tokens=metadata.get("cachedContentTokenCount"),
        thoughts_tokens=metadata.get("thoughtsTokenCount"),
        tool_prompt_tokens=metadata.get("toolUsePromptTokenCount"),
    )
    return Usage.from_token_usage(tokens)


def _convert_candidate_parts(parts: list[dict[str, Any]]) -> list[Any]:
    content: list[Any] = []
    for part in parts:
        if "text" in part:
            gemini: dict[str, Any] = {}
            if part.get("thought"):
                gemini["thought"] = True
            if part.get("thoughtSignature"):
                gemini["thoughtSignature"] = part["thoughtSignature"]
            content.append(TextPart(text=part["text"], ext={"gemini": gemini} if gemini else {}))
        elif "functionCall" in part:
            fc = part["functionCall"]
            ext: dict[str, Any] = {}
            if part.get("thoughtSignature"):
                ext["gemini"] = {"thoughtSignature": part["thoughtSignature"]}
            content.append(
                ToolUsePart(
                    id=fc.get("id") or _call_id(),
                    name=fc.get("name", ""),
                    args=fc.get("args") or {},
                    ext=ext,
                )
            )
        elif "inlineData" in part:
            data = part["inlineData"]
            content.append(ImagePart.from_base64(data.get("mimeType", ""), data.get("data", "")))
        elif "fileData" in part:
            data = part["fileData"]
            content.append(FilePart(file_uri=data.get("fileUri", ""), mime_type=data.get("mimeType", "")))
        else:
            logger.debug(f"Skipping unsupported Gemini part: {list(part)}")
    return content


def convert_response(data: dict[str, Any], model: str) -> ModelResponse:
    candidates = data.get("candidates") or []
    if not candidates:
        raise NoResponseError(GeminiModel.provider_name)

    candidate = candidates[0]
    parts = (candidate.get("content") or {}).get("parts") or []

    return ModelResponse(
        message=Message(role=MessageRole.ASSISTANT, content=_convert_candidate_parts(parts)),
        model_name=data.get("modelVersion") or model,
        vendor_name=GeminiModel.provider_name,
        usage=convert_usage(data.get("usageMetadata")),
        finish_reason=candidate.get("finishReason"),
    )


class GeminiModel(HttpModel):
    """Google Gemini API model."""

    provider_name = "gemini"
    display_name = "Google Gemini"
    default_model = "gemini-2.5-flash"
    api_key_env = "GEMINI_API_KEY"

    @classmethod
    def api_key_from_settings(cls, settings: Settings) -> str | None:
        return settings.providers.gemini_api_key

    @classmethod
    def base_url_from_settings(cls, settings: Settings) -> str:
        return settings.providers.gemini_base_url

    def _auth(self, api_key: str) -> AuthMethod:
        return ApiKeyAuth("x-goog-api-key", api_key)

    def _endpoint(self, method: str) -> Endpoint:
        return Endpoint(f"v1beta/models/{self.name}:{method}", HttpMethod.POST)

    def _generation(self) -> dict[str, Any]:
        config = self.generation_config
        generation: dict[str, Any] = {}
        if config.max_tokens is not None:
            generation["maxOutputTokens"] = config.max_tokens
        if config.temperature is not None:
            generation["temperature"] = config.temperature
        if config.top_p is not None:
            generation["topP"] = config.top_p
        if config.stop:
            generation["stopSequences"] = list(config.stop)
        return generation

    async def request(self, request: ModelRequest) -> ModelResponse:
        body = convert_request(request, self._generation())
        data = await self._post(self._endpoint("generateContent"), body)
        return convert_response(data, self.name)

    async def request_stream(self, request: ModelRequest) -> AsyncIterator[StreamEvent]:
        body = convert_request(request, self._generation())
        endpoint = self._endpoint("streamGenerateContent").with_query_params([("alt", "sse")])

        usage = Usage()
        finish_reason: str | None = None

        async for chunk in self._stream(endpoint, body, StreamOptions(set_stream_field=False)):
            if chunk.get("usageMetadata"):
                usage = convert_usage(chunk["usageMetadata"])
                yield UsageEvent(usage)

            for candidate in chunk.get("candidates") or []:
                parts = (candidate.get("content") or {}).get("parts") or []
                for part in _convert_candidate_parts(parts):
                    if isinstance(part, TextPart) and not part.is_reasoning:
                        yield TextDelta(part.text)
                    elif isinstance(part, ToolUsePart):
                        yield ToolCallEvent(ToolCall.from_part(part))
                if candidate.get("finishReason"):
                    finish_reason = candidate["finishReason"]

        yield StreamStop(usage=usage, finish_reason=finish_reason)

    async def request_structured(
        self, request: ModelRequest, schema: dict[str, Any]
    ) -> RawStructuredResponse:
        generation = self._generation()
        generation["responseMimeType"] = "application/json"
        generation["responseSchema"] = clean_json_schema(schema)

        body = convert_request(request, generation)
        data = await self._post(self._endpoint("generateContent"), body)
        response = convert_response(data, self.name)

        text = response.text
        if not text:
            raise NoResponseError(self.provider_name)
        try:
            value = json.loads(text)
        except ValueError as e:
            raise ResponseParsingError(f"Structured output is not valid JSON: {e}") from e

        return RawStructuredResponse(
            json=value,
            model_name=response.model_name,
            vendor_name=self.provider_name,
            usage=response.usage,
        )
