"""Tests for the shared request builder."""

import logging

import httpx
import pytest

from ai_ox.common.errors import (
    HttpError,
    InvalidRequestError,
    JsonError,
    RateLimitError,
    UnexpectedResponseError,
)
from ai_ox.common.request_builder import (
    ApiKeyAuth,
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
from ai_ox.common.retry import RetryPolicy


def _builder(client: httpx.AsyncClient, **kwargs) -> RequestBuilder:
    config = RequestConfig(base_url="https://api.example.com/v1/", **kwargs)
    return RequestBuilder(config, client=client)


class TestEndpoint:
    """Tests for endpoint definitions."""

    def test_defaults_to_post(self):
        """Should default to POST without extras."""
        endpoint = Endpoint("chat")

        assert endpoint.method == HttpMethod.POST
        assert endpoint.extra_headers is None
        assert endpoint.query_params is None

    def test_with_header_returns_new_endpoint(self):
        """Should not mutate the original endpoint."""
        endpoint = Endpoint("chat")
        updated = endpoint.with_header("x-beta", "1")

        assert updated.extra_headers == {"x-beta": "1"}
        assert endpoint.extra_headers is None

    def test_with_query_params(self):
        """Should attach query parameters."""
        endpoint = Endpoint("models", HttpMethod.GET).with_query_params([("alt", "sse")])

        assert endpoint.query_params == [("alt", "sse")]

    def test_method_has_body(self):
        """Should only treat POST, PUT and PATCH as having bodies."""
        assert HttpMethod.POST.has_body
        assert HttpMethod.PATCH.has_body
        assert not HttpMethod.GET.has_body
        assert not HttpMethod.DELETE.has_body


class TestBuildRequest:
    """Tests for request construction."""

    def test_url_join(self):
        """Should join base URL and path with exactly one slash."""
        builder = _builder(httpx.AsyncClient())

        request = builder.build_request(Endpoint("/chat/completions"))

        assert str(request.url) == "https://api.example.com/v1/chat/completions"

    def test_bearer_auth(self):
        """Should send Authorization: Bearer."""
        builder = _builder(httpx.AsyncClient(), auth=BearerAuth("sk-test"))

        request = builder.build_request(Endpoint("chat"))

        assert request.headers["authorization"] == "Bearer sk-test"

    def test_api_key_auth(self):
        """Should send the key in the named header."""
        builder = _builder(httpx.AsyncClient(), auth=ApiKeyAuth("x-api-key", "key-1"))

        request = builder.build_request(Endpoint("chat"))

        assert request.headers["x-api-key"] == "key-1"
        assert "authorization" not in request.headers

    def test_oauth_auth(self):
        """Should send a bearer token in the named header."""
        builder = _builder(httpx.AsyncClient(), auth=OAuthAuth("authorization", "tok"))

        request = builder.build_request(Endpoint("chat"))

        assert request.headers["authorization"] == "Bearer tok"

    def test_query_param_auth_after_endpoint_params(self):
        """Should append the auth parameter after endpoint parameters."""
        builder = _builder(httpx.AsyncClient(), auth=QueryParamAuth("key", "secret"))
        endpoint = Endpoint("generate", HttpMethod.GET).with_query_params([("alt", "sse")])

        request = builder.build_request(endpoint)

        assert list(request.url.params.multi_items()) == [("alt", "sse"), ("key", "secret")]

    def test_header_precedence(self):
        """Should let endpoint headers override defaults and user agent come last."""
        config = RequestConfig(
            base_url="https://api.example.com",
            default_headers={"x-version": "1", "x-other": "a"},
            user_agent="ai-ox-test",
        )
        builder = RequestBuilder(config, client=httpx.AsyncClient())

        request = builder.build_request(Endpoint("chat").with_header("x-version", "2"))

        assert request.headers["x-version"] == "2"
        assert request.headers["x-other"] == "a"
        assert request.headers["user-agent"] == "ai-ox-test"

    def test_json_content_type_only_for_body_methods(self):
        """Should add content-type for POST but not for GET."""
        builder = _builder(httpx.AsyncClient())

        post = builder.build_request(Endpoint("chat"), json_body={"a": 1})
        get = builder.build_request(Endpoint("models", HttpMethod.GET))

        assert post.headers["content-type"] == "application/json"
        assert "content-type" not in get.headers

    def test_unserializable_body(self):
        """Should raise JsonError for bodies that cannot be encoded."""
        builder = _builder(httpx.AsyncClient())

        with pytest.raises(JsonError):
            builder.build_request(Endpoint("chat"), json_body={"bad": object()})

    def test_config_builders(self):
        """Should support chained configuration."""
        config = (
            RequestConfig(base_url="https://x")
            .with_auth(BearerAuth("t"))
            .with_header("a", "b")
            .with_user_agent("ua")
            .with_retry(RetryPolicy(max_retries=1))
        )

        assert config.auth == BearerAuth("t")
        assert config.default_headers == {"a": "b"}
        assert config.user_agent == "ua"
        assert config.retry.max_retries == 1


class TestRequestJson:
    """Tests for JSON request execution."""

    @pytest.mark.asyncio
    async def test_success(self, make_client):
        """Should send the body and decode the response."""
        client, transport = make_client(lambda request: httpx.Response(200, json={"ok": True}))
        builder = _builder(client, auth=BearerAuth("sk"))

        result = await builder.request_json(Endpoint("chat"), {"model": "m"})

        assert result == {"ok": True}
        assert transport.last_json() == {"model": "m"}
        assert transport.last.method == "POST"

    @pytest.mark.asyncio
    async def test_api_error(self, make_client):
        """Should raise the parsed API error for non-2xx responses."""
        client, _ = make_client(
            lambda request: httpx.Response(400, json={"error": {"message": "bad input"}})
        )
        builder = _builder(client)

        with pytest.raises(InvalidRequestError, match="bad input") as exc_info:
            await builder.request_json(Endpoint("chat"), {})

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_invalid_json_success_body(self, make_client):
        """Should raise UnexpectedResponseError with status and body."""
        client, _ = make_client(lambda request: httpx.Response(200, content=b"not json"))
        builder = _builder(client)

        with pytest.raises(UnexpectedResponseError) as exc_info:
            await builder.request_json(Endpoint("chat"), {})

        assert "HTTP 200" in str(exc_info.value)
        assert "not json" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error(self, make_client):
        """Should wrap transport failures in HttpError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client, _ = make_client(handler)
        builder = _builder(client)

        with pytest.raises(HttpError, match="connection refused"):
            await builder.request_json(Endpoint("chat"), {})

    @pytest.mark.asyncio
    async def test_request_without_body(self, make_client):
        """Should send GET requests without a body."""
        client, transport = make_client(lambda request: httpx.Response(200, json=[1, 2]))
        builder = _builder(client)

        result = await builder.request(Endpoint("models", HttpMethod.GET))

        assert result == [1, 2]
        assert transport.last.content == b""

    @pytest.mark.asyncio
    async def test_request_unit(self, make_client):
        """Should return None for successful DELETE requests."""
        client, _ = make_client(lambda request: httpx.Response(204))
        builder = _builder(client)

        assert await builder.request_unit(Endpoint("files/1", HttpMethod.DELETE)) is None

    @pytest.mark.asyncio
    async def test_request_bytes(self, make_client):
        """Should return raw response bytes."""
        client, _ = make_client(lambda request: httpx.Response(200, content=b"\x00\x01"))
        builder = _builder(client)

        assert await builder.request_bytes(Endpoint("files/1", HttpMethod.GET)) == b"\x00\x01"


class TestRetries:
    """Tests for retrying transient failures."""

    @pytest.mark.asyncio
    async def test_retries_retryable_status(self, make_client):
        """Should retry 503 and return the eventual success."""
        responses = iter(
            [httpx.Response(503, text="busy"), httpx.Response(200, json={"ok": True})]
        )
        client, transport = make_client(lambda request: next(responses))
        builder = _builder(client, retry=RetryPolicy(max_retries=2, retry_delay_ms=0))

        result = await builder.request_json(Endpoint("chat"), {})

        assert result == {"ok": True}
        assert len(transport.requests) == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, make_client):
        """Should surface the last error once retries are exhausted."""
        client, transport = make_client(
            lambda request: httpx.Response(429, json={"error": {"message": "slow"}})
        )
        builder = _builder(client, retry=RetryPolicy(max_retries=2, retry_delay_ms=0))

        with pytest.raises(RateLimitError):
            await builder.request_json(Endpoint("chat"), {})

        assert len(transport.requests) == 3

    @pytest.mark.asyncio
    async def test_no_retry_on_client_error(self, make_client):
        """Should not retry 400 responses."""
        client, transport = make_client(
            lambda request: httpx.Response(400, json={"error": {"message": "bad"}})
        )
        builder = _builder(client, retry=RetryPolicy(max_retries=3, retry_delay_ms=0))

        with pytest.raises(InvalidRequestError):
            await builder.request_json(Endpoint("chat"), {})

        assert len(transport.requests) == 1

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self, make_client):
        """Should retry connection failures."""
        attempts = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            attempts["count"] += 1
            if attempts["count"] == 1:
                raise httpx.ConnectError("reset", request=request)
            return httpx.Response(200, json={})

        client, _ = make_client(handler)
        builder = _builder(client, retry=RetryPolicy(max_retries=1, retry_delay_ms=0))

        assert await builder.request_json(Endpoint("chat"), {}) == {}
        assert attempts["count"] == 2


class TestStream:
    """Tests for streaming requests."""

    @pytest.mark.asyncio
    async def test_stream_injects_stream_field(self, make_client, sse):
        """Should set stream: true and yield decoded events."""
        client, transport = make_client(
            lambda request: httpx.Response(200, content=sse({"n": 1}, {"n": 2}, done=True))
        )
        builder = _builder(client)

        events = [e async for e in builder.stream(Endpoint("chat"), {"model": "m"})]

        assert events == [{"n": 1}, {"n": 2}]
        assert transport.last_json() == {"model": "m", "stream": True}

    @pytest.mark.asyncio
    async def test_stream_without_stream_field(self, make_client, sse):
        """Should leave the body untouched when disabled."""
        client, transport = make_client(lambda request: httpx.Response(200, content=sse({"n": 1})))
        builder = _builder(client)

        options = StreamOptions(set_stream_field=False)
        events = [e async for e in builder.stream(Endpoint("chat"), {"model": "m"}, options)]

        assert events == [{"n": 1}]
        assert transport.last_json() == {"model": "m"}

    @pytest.mark.asyncio
    async def test_stream_rejects_non_object_body(self, make_client):
        """Should raise JsonError for non-object bodies."""
        client, transport = make_client(lambda request: httpx.Response(200))
        builder = _builder(client)

        with pytest.raises(JsonError, match="must be a JSON object"):
            async for _ in builder.stream(Endpoint("chat"), [1, 2]):
                pass

        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_stream_error_status(self, make_client):
        """Should raise the parsed error before yielding events."""
        client, _ = make_client(
            lambda request: httpx.Response(401, json={"error": {"message": "bad key"}})
        )
        builder = _builder(client)

        with pytest.raises(InvalidRequestError, match="bad key"):
            async for _ in builder.stream(Endpoint("chat"), {}):
                pass


class TestMultipart:
    """Tests for multipart uploads."""

    def test_build_form(self):
        """Should produce httpx data and files."""
        form = MultipartForm().text("purpose", "batch").file_from_bytes(
            "file", "a.jsonl", b"{}", "application/jsonl"
        )

        data, files = form.build()

        assert data == {"purpose": "batch"}
        assert files == [("file", ("a.jsonl", b"{}", "application/jsonl"))]

    def test_invalid_mime_falls_back(self, caplog):
        """Should drop invalid MIME types with a warning."""
        with caplog.at_level(logging.WARNING):
            form = MultipartForm().file_from_bytes("file", "a.bin", b"x", "not a mime")

        _, files = form.build()

        assert files == [("file", ("a.bin", b"x"))]
        assert "Ignoring invalid MIME type" in caplog.text

    @pytest.mark.asyncio
    async def test_request_multipart(self, make_client):
        """Should send multipart data without a JSON content type."""
        client, transport = make_client(lambda request: httpx.Response(200, json={"id": "f1"}))
        builder = _builder(client, auth=BearerAuth("sk"))
        form = MultipartForm().text("purpose", "batch").file_from_bytes("file", "a.txt", b"hi")

        result = await builder.request_multipart(Endpoint("files"), form)

        assert result == {"id": "f1"}
        content_type = transport.last.headers["content-type"]
        assert content_type.startswith("multipart/form-data")
        body = transport.last.read()
        assert b'name="purpose"' in body
        assert b"hi" in body


class TestLifecycle:
    """Tests for client ownership."""

    @pytest.mark.asyncio
    async def test_does_not_close_shared_client(self):
        """Should leave a caller-supplied client open."""
        client = httpx.AsyncClient()
        async with _builder(client):
            pass

        assert not client.is_closed
        await client.aclose()

    @pytest.mark.asyncio
    async def test_closes_owned_client(self):
        """Should close a client it created."""
        builder = RequestBuilder(RequestConfig(base_url="https://x"))
        client = builder.client

        await builder.aclose()

        assert client.is_closed


def test_debug_logging(caplog):
    """Should log payloads when debug is enabled."""
    builder = _builder(httpx.AsyncClient(), debug=True)

    with caplog.at_level(logging.DEBUG, logger="ai_ox.common.request_builder"):
        builder._log_payload("POST", Endpoint("chat"), {"model": "m"})

    assert "body kind: object" in caplog.text
    assert "'model': 'm'" in caplog.text
