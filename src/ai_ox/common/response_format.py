"""Response-format wrapper shared across OpenAI-compatible providers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ResponseFormat:
    """
    Tagged response format sent as `response_format`.

    The `json_schema` variant nests its payload beneath a `json_schema` key,
    as OpenAI and Groq require.
    """

    type: str
    json_schema: dict[str, Any] | None = None

    @classmethod
    def text(cls) -> ResponseFormat:
        return cls(type="text")

    @classmethod
    def json_object(cls) -> ResponseFormat:
        return cls(type="json_object")

    @classmethod
    def from_json_schema(cls, json_schema: dict[str, Any]) -> ResponseFormat:
        return cls(type="json_schema", json_schema=json_schema)

    def to_dict(self) -> dict[str, Any]:
        if self.type == "json_schema":
            return {"type": "json_schema", "json_schema": self.json_schema or {}}
        return {"type": self.type}
