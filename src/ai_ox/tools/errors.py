"""
Errors raised during tool invocation.

The underlying exception is always chained as `__cause__`, so logs keep
the full context while callers can match on the failure category.
"""


class ToolError(Exception):
    """Base class for tool invocation failures."""


class ToolNotFoundError(ToolError):
    """The requested tool was not found."""

    def __init__(self, name: str):
        super().__init__(f"Tool not found: {name}")
        self.name = name


class ToolInputError(ToolError):
    """The call arguments did not match the tool's parameters."""

    def __init__(self, name: str):
        super().__init__(f"Input deserialization failed for tool '{name}'")
        self.name = name


class ToolExecutionError(ToolError):
    """The tool ran but raised an error of its own."""

    def __init__(self, name: str):
        super().__init__(f"Tool execution failed for tool '{name}'")
        self.name = name


class ToolOutputError(ToolError):
    """The tool's return value could not be serialized."""

    def __init__(self, name: str):
        super().__init__(f"Output serialization failed for tool '{name}'")
        self.name = name


class ToolInternalError(ToolError):
    """An unexpected failure in the tool-handling machinery itself."""

    def __init__(self, context: str):
        super().__init__(f"Internal tool error: {context}")
        self.context = context
