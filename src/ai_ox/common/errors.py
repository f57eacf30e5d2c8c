"""
Unified error types for all AI providers.

Every provider client raises subclasses of ProviderError for transport,
decoding and API failures, so callers can handle errors uniformly no
matter which vendor produced them.
"""

import json
from typing import Any


class ProviderError(Exception):
    """Base class for all provider transport and API errors."""


class HttpError(ProviderError):
    """HTTP request failed before a response was received."""

    def __init__(self, message: str):
        super().__init__(f"HTTP request failed: {message}")


class JsonError(ProviderError):
    """JSON serialization or deserialization failed."""

    def __init__(self, message: str):
        super().__init__(f"JSON error: {message}")


class InvalidRequestError(ProviderError):
    """The API rejected the request.

    Attributes:
        message: Error message reported by the API
        code: Provider error code, if any
        details: Provider-specific extra fields (type, param, detail, status, ...)
        status_code: HTTP status of the response
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = None,
    ):
        super().__init__(f"Invalid request: {message}")
        self.message = message
        self.code = code
        self.details = details
        self.status_code = status_code


class RateLimitError(InvalidRequestError):
    """Rate limit exceeded (HTTP 429)."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        code: str | None = None,
        details: dict[str, Any] | None = None,
        status_code: int | None = 429,
    ):
        super().__init__(message, code=code, details=details, status_code=status_code)
        self.args = (f"Rate limit exceeded: {message}",)


class AuthenticationMissingError(ProviderError):
    """No API key or OAuth token is available."""

    def __init__(self, message: str = "Authentication missing"):
        super().__init__(message)


class InvalidModelError(ProviderError):
    """Invalid model identifier."""

    def __init__(self, model: str):
        super().__init__(f"Invalid model: {model}")
        self.model = model


class UnexpectedResponseError(ProviderError):
    """The API returned a response that could not be interpreted."""

    def __init__(self, message: str):
        super().__init__(f"Unexpected response: {message}")


class InvalidEventDataError(ProviderError):
    """A streaming event carried invalid data."""

    def __init__(self, message: str):
        super().__init__(f"Invalid event data: {message}")


class UrlBuildError(ProviderError):
    """The request URL could not be built."""

    def __init__(self, message: str):
        super().__init__(f"URL build failed: {message}")


class StreamError(ProviderError):
    """The provider reported an error in the middle of a stream."""

    def __init__(self, message: str):
        super().__init__(f"Stream error: {message}")


class InvalidMimeTypeError(ProviderError):
    """Invalid MIME type for an upload."""

    def __init__(self, mime_type: str):
        super().__init__(f"Invalid MIME type: {mime_type}")


class Utf8Error(ProviderError):
    """Response bytes were not valid UTF-8."""

    def __init__(self, message: str):
        super().__init__(f"UTF-8 conversion error: {message}")


def _error_from_fields(
    status_code: int,
    message: str,
    code: str | None,
    details: dict[str, Any],
) -> InvalidRequestError:
    error_cls = RateLimitError if status_code == 429 else InvalidRequestError
    return error_cls(
        message,
        code=code,
        details=details or None,
        status_code=status_code,
    )


def _extract_structured_error(data: Any, status_code: int) -> InvalidRequestError | None:
    """Extract a structured error from the known provider JSON error formats."""
    if not isinstance(data, dict):
        return None

    error_obj = data.get("error")
    if isinstance(error_obj, dict):
        message = error_obj.get("message")
        code = error_obj.get("code")

        # OpenRouter format: {"error": {"code": 123, "message": "..."}, "user_id": "..."}
        if isinstance(code, int) and not isinstance(code, bool) and isinstance(message, str):
            details: dict[str, Any] = {"status": str(status_code)}
            if "user_id" in data:
                details["user_id"] = data["user_id"]
            return _error_from_fields(status_code, message, str(code), details)

        # OpenAI / Groq / Anthropic format:
        # {"error": {"message": "...", "type": "...", "code": "...", "param": "..."}}
        if isinstance(message, str):
            details = {}
            for key in ("type", "param", "detail"):
                if error_obj.get(key) is not None:
                    details[key] = error_obj[key]
            return _error_from_fields(
                status_code,
                message,
                code if isinstance(code, str) else None,
                details,
            )

    # Mistral direct format: {"message": "...", "detail": ..., "type": "...", "param": ..., "code": "..."}
    message = data.get("message")
    if isinstance(message, str):
        code = data.get("code")
        details = {}
        for key in ("detail", "param", "type"):
            if data.get(key) is not None:
                details[key] = data[key]
        return _error_from_fields(
            status_code,
            message,
            code if isinstance(code, str) else None,
            details,
        )

    return None


def parse_api_error_response(status_code: int, body: bytes) -> ProviderError:
    """
    Parse an error response body into a ProviderError.

    Handles the error formats of OpenAI, Groq, Anthropic, Mistral and
    OpenRouter. Falls back to the raw body for anything unrecognised.

    Args:
        status_code: HTTP status code of the response
        body: Raw response body

    Returns:
        The most specific error that describes the response
    """
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        data = None

    if data is not None:
        parsed = _extract_structured_error(data, status_code)
        if parsed is not None:
            return parsed

    body_str = body.decode("utf-8", errors="replace")
    if status_code == 429:
        return RateLimitError(body_str or "Rate limit exceeded", status_code=status_code)
    return UnexpectedResponseError(f"HTTP {status_code}: {body_str}")
