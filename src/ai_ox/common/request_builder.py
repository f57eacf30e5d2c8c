"""
Shared HTTP request building for provider clients.

Eliminates the per-provider boilerplate of joining URLs, attaching
credentials, decoding JSON, mapping error bodies and parsing SSE streams.
Each provider describes its API as Endpoints plus one RequestConfig.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import AsyncIterator
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

import httpx

from ai_ox.common.errors import (
    HttpError,
    JsonError,
    UnexpectedResponseError,
    parse_api_error_response,
)
from ai_ox.common.retry import RetryPolicy
from ai_ox.common.streaming import SseParser

logger = logging.getLogger(__name__)

_MIME_RE = re.compile(r"^[\w.+-]+/[\w.+-]+(\s*;.*)?$")


class HttpMethod(str, Enum):
    """HTTP method for API endpoints."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def has_body(self) -> bool:
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


@dataclass(frozen=True)
class BearerAuth:
    """Authorization: Bearer <token>"""

    token: str


@dataclass(frozen=True)
class ApiKeyAuth:
    """API key sent in a custom header, e.g. x-api-key: <key>"""

    header_name: str
    key: str


@dataclass(frozen=True)
class OAuthAuth:
    """OAuth token sent as `<header_name>: Bearer <token>`."""

    header_name: str
    token: str


@dataclass(frozen=True)
class QueryParamAuth:
    """API key sent as a query parameter, e.g. ?key=<key>"""

    name: str
    value: str


AuthMethod = BearerAuth | ApiKeyAuth | OAuthAuth | QueryParamAuth


@dataclass(frozen=True)
class Endpoint:
    """An API endpoint with its method and per-endpoint extras."""

    path: str
    method: HttpMethod = HttpMethod.POST
    extra_headers: dict[str, str] | None = None
    query_params: list[tuple[str, str]] | None = None

    def with_header(self, key: str, value: str) -> Endpoint:
        headers = dict(self.extra_headers or {})
        headers[key] = value
        return replace(self, extra_headers=headers)

    def with_query_params(self, params: list[tuple[str, str]]) -> Endpoint:
        return replace(self, query_params=list(params))


@dataclass
class RequestConfig:
    """Per-provider configuration for request building."""

    base_url: str
    auth: AuthMethod | None = None
    default_headers: dict[str, str] = field(default_factory=dict)
    user_agent: str | None = None
    timeout: httpx.Timeout = field(default_factory=lambda: httpx.Timeout(120.0, connect=10.0))
    retry: RetryPolicy | None = None
    debug: bool = False

    def with_auth(self, auth: AuthMethod) -> RequestConfig:
        self.auth = auth
        return self

    def with_header(self, key: str, value: str) -> RequestConfig:
        self.default_headers[key] = value
        return self

    def with_user_agent(self, user_agent: str) -> RequestConfig:
        self.user_agent = user_agent
        return self

    def with_retry(self, retry: RetryPolicy) -> RequestConfig:
        self.retry = retry
        return self


@dataclass(frozen=True)
class StreamOptions:
    """Options that control how streaming requests are constructed."""

    # Whether to set "stream": true in the JSON body before sending
    set_stream_field: bool = True


def _json_kind(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


class MultipartForm:
    """Builder for multipart form uploads."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}
        self._files: list[tuple[str, tuple[str, bytes] | tuple[str, bytes, str]]] = []

    def text(self, name: str, value: str) -> MultipartForm:
        """Add a text field."""
        self._data[name] = value
        return self

    def file_from_bytes(
        self,
        name: str,
        filename: str,
        data: bytes,
        mime_type: str | None = None,
    ) -> MultipartForm:
        """Add a file from bytes, optionally with a MIME type."""
        if mime_type is not None and not _MIME_RE.match(mime_type):
            logger.warning(f"Ignoring invalid MIME type '{mime_type}' for {filename}")
            mime_type = None

        if mime_type is None:
            self._files.append((name, (filename, data)))
        else:
            self._files.append((name, (filename, data, mime_type)))
        return self

    def build(self) -> tuple[dict[str, str], list[tuple[str, Any]]]:
        """Return (data, files) in the shape httpx accepts."""
        return dict(self._data), list(self._files)


class RequestBuilder:
    """
    Generic request builder handling common HTTP patterns.

    Owns its httpx.AsyncClient unless one is supplied, in which case the
    caller is responsible for closing it.
    """

    def __init__(self, config: RequestConfig, client: httpx.AsyncClient | None = None):
        self.config = config
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.config.timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
            self._owns_client = True
        return self._client

    def url_for(self, endpoint: Endpoint) -> str:
        return f"{self.config.base_url.rstrip('/')}/{endpoint.path.lstrip('/')}"

    def build_headers(self, endpoint: Endpoint, add_json_content_type: bool = True) -> dict[str, str]:
        headers: dict[str, str] = {}

        auth = self.config.auth
        if isinstance(auth, BearerAuth):
            headers["authorization"] = f"Bearer {auth.token}"
        elif isinstance(auth, ApiKeyAuth):
            headers[auth.header_name] = auth.key
        elif isinstance(auth, OAuthAuth):
            headers[auth.header_name] = f"Bearer {auth.token}"

        headers.update(self.config.default_headers)
        if endpoint.extra_headers:
            headers.update(endpoint.extra_headers)

        if self.config.user_agent:
            headers["user-agent"] = self.config.user_agent

        if add_json_content_type and endpoint.method.has_body:
            headers["content-type"] = "application/json"

        return headers

    def build_params(self, endpoint: Endpoint) -> list[tuple[str, str]]:
        params = list(endpoint.query_params or [])
        if isinstance(self.config.auth, QueryParamAuth):
            params.append((self.config.auth.name, self.config.auth.value))
        return params

    def build_request(
        self,
        endpoint: Endpoint,
        *,
        json_body: Any = None,
        add_json_content_type: bool = True,
        data: dict[str, str] | None = None,
        files: list[tuple[str, Any]] | None = None,
    ) -> httpx.Request:
        """
        Build an httpx.Request for the given endpoint.

        Args:
            endpoint: Target endpoint
            json_body: JSON-serialisable body
            add_json_content_type: Add content-type for POST/PUT/PATCH
            data: Multipart text fields
            files: Multipart file fields

        Returns:
            Request ready to send
        """
        try:
            return self.client.build_request(
                endpoint.method.value,
                self.url_for(endpoint),
                params=self.build_params(endpoint) or None,
                headers=self.build_headers(endpoint, add_json_content_type),
                json=json_body,
                data=data,
                files=files,
            )
        except TypeError as e:
            raise JsonError(str(e)) from e

    def _log_payload(self, label: str, endpoint: Endpoint, body: Any) -> None:
        if self.config.debug:
            logger.debug(
                f"{label} {endpoint.path} body kind: {_json_kind(body)} payload: {body}"
            )

    async def _send(self, request: httpx.Request, *, stream: bool = False) -> httpx.Response:
        """Send a request, retrying transient failures per the retry policy."""
        retry = self.config.retry
        attempt = 0

        while True:
            attempt += 1
            try:
                response = await self.client.send(request, stream=stream)
            except httpx.HTTPError as e:
                if retry is not None and attempt <= retry.max_retries:
                    delay_ms = retry.get_retry_delay(attempt)
                    logger.warning(
                        f"{request.method} {request.url.path} failed ({e}), "
                        f"retrying in {delay_ms}ms (attempt {attempt}/{retry.max_retries})"
                    )
                    await asyncio.sleep(delay_ms / 1000)
                    continue
                raise HttpError(str(e)) from e

            if (
                retry is not None
                and retry.should_retry(response.status_code)
                and attempt <= retry.max_retries
            ):
                delay_ms = retry.get_retry_delay(attempt)
                logger.warning(
                    f"{request.method} {request.url.path} returned {response.status_code}, "
                    f"retrying in {delay_ms}ms (attempt {attempt}/{retry.max_retries})"
                )
                await response.aclose()
                await asyncio.sleep(delay_ms / 1000)
                continue

            return response

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        if not response.is_success:
            raise parse_api_error_response(response.status_code, response.content)

        try:
            return response.json()
        except ValueError as e:
            raise UnexpectedResponseError(
                f"HTTP {response.status_code} but failed to decode JSON: {e}; "
                f"body: {response.content.decode('utf-8', errors='replace')}"
            ) from e

    async def request_json(self, endpoint: Endpoint, body: Any = None) -> Any:
        """Execute a request with a JSON body and return the decoded response."""
        if body is not None:
            self._log_payload(endpoint.method.value, endpoint, body)
        request = self.build_request(endpoint, json_body=body)
        response = await self._send(request)
        return self._decode_json(response)

    async def request(self, endpoint: Endpoint) -> Any:
        """Execute a request without a body and return the decoded response."""
        response = await self._send(self.build_request(endpoint))
        return self._decode_json(response)

    async def request_unit(self, endpoint: Endpoint) -> None:
        """Execute a request whose response body is irrelevant (e.g. DELETE)."""
        response = await self._send(self.build_request(endpoint))
        if not response.is_success:
            raise parse_api_error_response(response.status_code, response.content)

    async def request_bytes(self, endpoint: Endpoint) -> bytes:
        """Execute a request and return the raw body (e.g. file downloads)."""
        response = await self._send(self.build_request(endpoint))
        if not response.is_success:
            raise parse_api_error_response(response.status_code, response.content)
        return response.content

    async def request_multipart(self, endpoint: Endpoint, form: MultipartForm) -> Any:
        """Execute a multipart form request (file uploads)."""
        data, files = form.build()
        request = self.build_request(
            endpoint,
            add_json_content_type=False,
            data=data,
            files=files,
        )
        response = await self._send(request)
        return self._decode_json(response)

    async def stream(
        self,
        endpoint: Endpoint,
        body: Any = None,
        options: StreamOptions | None = None,
    ) -> AsyncIterator[Any]:
        """
        Execute a streaming request and yield decoded SSE event payloads.

        Args:
            endpoint: Target endpoint
            body: JSON object body
            options: Stream construction options

        Yields:
            Decoded JSON payload of each SSE event

        Raises:
            JsonError: If the body is not a JSON object
            ProviderError: If the API returns an error status
        """
        options = options or StreamOptions()
        payload: dict[str, Any] | None = None

        if body is not None:
            if not isinstance(body, dict):
                raise JsonError(f"Streaming body must be a JSON object, got {body!r}")
            payload = dict(body)
            if options.set_stream_field:
                payload["stream"] = True
            self._log_payload("STREAM", endpoint, payload)

        request = self.build_request(endpoint, json_body=payload)
        response = await self._send(request, stream=True)

        try:
            if not response.is_success:
                error_body = await response.aread()
                raise parse_api_error_response(response.status_code, error_body)

            try:
                async for event in SseParser(response.aiter_bytes()):
                    yield event
            except httpx.HTTPError as e:
                raise HttpError(str(e)) from e
        finally:
            await response.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this builder owns it."""
        if not self._owns_client or self._client is None:
            return
        if not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> RequestBuilder:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


__all__ = [
    "ApiKeyAuth",
    "AuthMethod",
    "BearerAuth",
    "Endpoint",
    "HttpMethod",
    "MultipartForm",
    "OAuthAuth",
    "QueryParamAuth",
    "RequestBuilder",
    "RequestConfig",
    "StreamOptions",
]
