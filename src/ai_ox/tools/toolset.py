"""ToolSet - a ToolBox composed of other toolboxes."""

from __future__ import annotations

from ai_ox.tools.errors import ToolNotFoundError
from ai_ox.tools.toolbox import ToolBox
from ai_ox.tools.types import Tool, ToolCall, ToolResult


class ToolSet(ToolBox):
    """
    Combines several toolboxes behind one interface.

    Calls are routed to the first toolbox that declares the function.
    """

    def __init__(self, toolboxes: list[ToolBox] | None = None):
        self._toolboxes: list[ToolBox] = list(toolboxes or [])

    def add_toolbox(self, toolbox: ToolBox) -> None:
        self._toolboxes.append(toolbox)

    def with_toolbox(self, toolbox: ToolBox) -> ToolSet:
        """Add a toolbox and return self for chaining."""
        self.add_toolbox(toolbox)
        return self

    def __len__(self) -> int:
        return len(self._toolboxes)

    def get_all_tools(self) -> list[Tool]:
        return [t for toolbox in self._toolboxes for t in toolbox.tools()]

    def tools(self) -> list[Tool]:
        return self.get_all_tools()

    def has_function(self, name: str) -> bool:
        return any(toolbox.has_function(name) for toolbox in self._toolboxes)

    async def invoke(self, call: ToolCall) -> ToolResult:
        for toolbox in self._toolboxes:
            if toolbox.has_function(call.name):
                return await toolbox.invoke(call)
        raise ToolNotFoundError(call.name)
