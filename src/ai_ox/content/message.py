"""Provider-agnostic conversation messages."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_serializer

from ai_ox.content.part import Part, TextPart, ToolUsePart


class MessageRole(str, Enum):
    """Role of the message author."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Message(BaseModel):
    """A single conversation turn made of content parts."""

    role: MessageRole
    content: list[Part] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC).isoformat().replace("+00:00", "Z")

    @classmethod
    def user(cls, text: str) -> Message:
        return cls(role=MessageRole.USER, content=[TextPart(text=text)])

    @classmethod
    def assistant(cls, text: str) -> Message:
        return cls(role=MessageRole.ASSISTANT, content=[TextPart(text=text)])

    @classmethod
    def system(cls, text: str) -> Message:
        return cls(role=MessageRole.SYSTEM, content=[TextPart(text=text)])

    @property
    def text(self) -> str | None:
        """
        Concatenated answer text, or None if the message has none.

        Reasoning parts are excluded; see `reasoning`.
        """
        texts = [p.text for p in self.content if isinstance(p, TextPart) and not p.is_reasoning]
        return "".join(texts) if texts else None

    @property
    def reasoning(self) -> str | None:
        texts = [p.text for p in self.content if isinstance(p, TextPart) and p.is_reasoning]
        return "".join(texts) if texts else None

    def tool_uses(self) -> list[ToolUsePart]:
        return [p for p in self.content if isinstance(p, ToolUsePart)]


def to_messages(items: Iterable[Message | str | dict[str, Any]] | Message | str) -> list[Message]:
    """
    Coerce message-like values into a list of Messages.

    Strings become user messages and dicts are validated as Messages.
    """
    if isinstance(items, (Message, str)):
        items = [items]

    messages: list[Message] = []
    for item in items:
        if isinstance(item, Message):
            messages.append(item)
        elif isinstance(item, str):
            messages.append(Message.user(item))
        elif isinstance(item, dict):
            messages.append(Message.model_validate(item))
        else:
            raise TypeError(f"Cannot convert {type(item).__name__} to Message")
    return messages
