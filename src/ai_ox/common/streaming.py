"""
Server-Sent Events parsing for streaming responses.

Only `data:` fields carry payloads; `event`, `id` and `retry` fields are
ignored; providers repeat the event type inside the JSON payload.
"""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

from ai_ox.common.errors import InvalidEventDataError, Utf8Error


DONE_MARKER = "[DONE]"


def _decode_payload(data_lines: list[str]) -> Any | None:
    """Join pending data lines and decode them as one JSON payload."""
    if not data_lines:
        return None

    payload = "\n".join(data_lines)
    data_lines.clear()

    if not payload or payload == DONE_MARKER:
        return None

    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise InvalidEventDataError(f"JSON parse error: {e}") from e


def _process_line(line: str, data_lines: list[str]) -> bool:
    """
    Process a single SSE line.

    Returns:
        True when the line terminates the current event
    """
    line = line.rstrip("\n").rstrip("\r").rstrip()

    if not line:
        return True

    if line.startswith(":"):
        return False

    if line.startswith("data:"):
        data = line[5:].lstrip()
        if data == DONE_MARKER:
            data_lines.clear()
        elif data:
            data_lines.append(data)

    return False


class SseParser:
    """
    Incremental SSE parser over an async byte stream.

    Example:
        parser = SseParser(response.aiter_bytes())
        async for event in parser:
            handle(event)
    """

    def __init__(self, byte_stream: AsyncIterator[bytes]):
        self._byte_stream = byte_stream.__aiter__()
        self._buffer = bytearray()
        self._data_lines: list[str] = []
        self._exhausted = False

    def __aiter__(self) -> SseParser:
        return self

    async def __anext__(self) -> Any:
        event = await self.next_event()
        if event is None:
            raise StopAsyncIteration
        return event

    async def next_event(self) -> Any | None:
        """Return the next decoded event payload, or None when the stream ends."""
        while True:
            event = self._parse_from_buffer()
            if event is not None:
                return event

            if self._exhausted:
                return None

            try:
                chunk = await self._byte_stream.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                return self._parse_final_event()

            self._buffer.extend(chunk)

    def _parse_from_buffer(self) -> Any | None:
        while True:
            pos = self._buffer.find(b"\n")
            if pos < 0:
                return None

            line_bytes = bytes(self._buffer[: pos + 1])
            del self._buffer[: pos + 1]

            if _process_line(self._decode(line_bytes), self._data_lines):
                event = _decode_payload(self._data_lines)
                if event is not None:
                    return event

    def _parse_final_event(self) -> Any | None:
        if self._buffer:
            line = self._decode(bytes(self._buffer))
            self._buffer.clear()
            if _process_line(line, self._data_lines):
                return _decode_payload(self._data_lines)

        return _decode_payload(self._data_lines)

    @staticmethod
    def _decode(line_bytes: bytes) -> str:
        try:
            return line_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise Utf8Error(str(e)) from e


def parse_sse_events(chunk: str) -> list[Any]:
    """
    Parse every SSE event contained in a complete string.

    Args:
        chunk: Raw SSE text

    Returns:
        Decoded JSON payloads in stream order
    """
    events: list[Any] = []
    data_lines: list[str] = []

    for line in chunk.split("\n"):
        if _process_line(line, data_lines):
            event = _decode_payload(data_lines)
            if event is not None:
                events.append(event)

    event = _decode_payload(data_lines)
    if event is not None:
        events.append(event)

    return events
