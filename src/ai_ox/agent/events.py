"""
Events emitted by `Agent.stream`.

Each event exposes `event_type` so consumers can dispatch on a string
as well as on the class.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from ai_ox.content.delta import StreamEvent
from ai_ox.models.base import ModelResponse
from ai_ox.tools.types import ToolCall, ToolResult


class EventType(str, Enum):
    """Agent event types."""

    STARTED = "started"
    STREAM_EVENT = "stream_event"
    TOOL_EXECUTION = "tool_execution"
    TOOL_RESULT = "tool_result"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class AgentEvent:
    """Base class for agent events."""

    event_type: ClassVar[EventType]


@dataclass(frozen=True)
class Started(AgentEvent):
    """The agent run has started."""

    event_type: ClassVar[EventType] = EventType.STARTED


@dataclass(frozen=True)
class StreamEventReceived(AgentEvent):
    """A model stream event was received."""

    event: StreamEvent
    event_type: ClassVar[EventType] = EventType.STREAM_EVENT


@dataclass(frozen=True)
class ToolExecution(AgentEvent):
    """A tool call is about to be executed."""

    call: ToolCall
    event_type: ClassVar[EventType] = EventType.TOOL_EXECUTION


@dataclass(frozen=True)
class ToolResultReceived(AgentEvent):
    """A tool call finished."""

    result: ToolResult
    event_type: ClassVar[EventType] = EventType.TOOL_RESULT


@dataclass(frozen=True)
class Completed(AgentEvent):
    """The run finished with a final response."""

    response: ModelResponse
    event_type: ClassVar[EventType] = EventType.COMPLETED


@dataclass(frozen=True)
class Failed(AgentEvent):
    """The run stopped because of an agent-level failure."""

    message: str
    event_type: ClassVar[EventType] = EventType.FAILED
