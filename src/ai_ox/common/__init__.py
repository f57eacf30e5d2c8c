"""
ai_ox.common - Shared HTTP plumbing for provider clients.

This module contains the request builder, SSE parsing, unified provider
errors and token usage types used by every provider implementation.
"""

from ai_ox.common.errors import (
    AuthenticationMissingError,
    HttpError,
    InvalidEventDataError,
    InvalidMimeTypeError,
    InvalidModelError,
    InvalidRequestError,
    JsonError,
    ProviderError,
    RateLimitError,
    StreamError,
    UnexpectedResponseError,
    UrlBuildError,
    Utf8Error,
    parse_api_error_response,
)
from ai_ox.common.request_builder import (
    ApiKeyAuth,
    AuthMethod,
    BearerAuth,
    Endpoint,
    HttpMethod,
    MultipartForm,
    OAuthAuth,
    QueryParamAuth,
    RequestBuilder,
    RequestConfig,
    StreamOptions,
)
from ai_ox.common.response_format import ResponseFormat
from ai_ox.common.retry import RetryPolicy
from ai_ox.common.streaming import SseParser, parse_sse_events
from ai_ox.common.usage import TokenUsage

__all__ = [
    # Errors
    "AuthenticationMissingError",
    "HttpError",
    "InvalidEventDataError",
    "InvalidMimeTypeError",
    "InvalidModelError",
    "InvalidRequestError",
    "JsonError",
    "ProviderError",
    "RateLimitError",
    "StreamError",
    "UnexpectedResponseError",
    "UrlBuildError",
    "Utf8Error",
    "parse_api_error_response",
    # Request builder
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
    # Streaming
    "SseParser",
    "parse_sse_events",
    # Misc
    "ResponseFormat",
    "RetryPolicy",
    "TokenUsage",
]
