"""Events emitted while streaming a model response."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ai_ox.usage import Usage

if TYPE_CHECKING:
    from ai_ox.tools.types import ToolCall


@dataclass(frozen=True)
class TextDelta:
    """A fragment of assistant text."""

    text: str


@dataclass(frozen=True)
class ToolCallEvent:
    """A tool call whose arguments have been fully received."""

    call: ToolCall


@dataclass(frozen=True)
class UsageEvent:
    """Token usage reported mid-stream."""

    usage: Usage


@dataclass(frozen=True)
class StreamStop:
    """Final event of every model stream."""

    usage: Usage = field(default_factory=Usage)
    finish_reason: str | None = None


StreamEvent = TextDelta | ToolCallEvent | UsageEvent | StreamStop
