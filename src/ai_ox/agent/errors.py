"""Errors raised by the agent loop."""

from __future__ import annotations

from typing import Any


class AgentError(Exception):
    """Base class for agent failures."""


class MaxIterationsReachedError(AgentError):
    """The tool-calling loop did not finish within the iteration limit."""

    def __init__(self, max_iterations: int):
        super().__init__(f"Maximum iterations ({max_iterations}) reached")
        self.max_iterations = max_iterations


class ToolCallsWithoutToolsError(AgentError):
    """The model requested tool calls but the agent has no tools."""

    def __init__(self) -> None:
        super().__init__("Model requested tool calls but no tools are available")


class AgentToolError(AgentError):
    """A tool invocation failed during the loop."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name


class AgentResponseParsingError(AgentError):
    """Model output could not be parsed into the requested type."""

    def __init__(self, message: str, response_text: str, schema: dict[str, Any] | None = None):
        super().__init__(f"Failed to parse response: {message}")
        self.response_text = response_text
        self.schema = schema


class AgentNoResponseError(AgentError):
    """The model returned no usable content."""

    def __init__(self) -> None:
        super().__init__("Model returned no response content")
