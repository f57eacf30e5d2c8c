"""
ai_ox.agent - Tool-calling agent loop.
"""

from ai_ox.agent.agent import Agent
from ai_ox.agent.errors import (
    AgentError,
    AgentNoResponseError,
    AgentResponseParsingError,
    AgentToolError,
    MaxIterationsReachedError,
    ToolCallsWithoutToolsError,
)
from ai_ox.agent.events import (
    AgentEvent,
    Completed,
    EventType,
    Failed,
    Started,
    StreamEventReceived,
    ToolExecution,
    ToolResultReceived,
)

__all__ = [
    "Agent",
    # Errors
    "AgentError",
    "AgentNoResponseError",
    "AgentResponseParsingError",
    "AgentToolError",
    "MaxIterationsReachedError",
    "ToolCallsWithoutToolsError",
    # Events
    "AgentEvent",
    "Completed",
    "EventType",
    "Failed",
    "Started",
    "StreamEventReceived",
    "ToolExecution",
    "ToolResultReceived",
]
