"""
ai_ox.tools - Tool declarations, toolboxes and schema helpers.
"""

from ai_ox.tools.errors import (
    ToolError,
    ToolExecutionError,
    ToolInputError,
    ToolInternalError,
    ToolNotFoundError,
    ToolOutputError,
)
from ai_ox.tools.schema import clean_json_schema, inline_refs, schema_for_type
from ai_ox.tools.toolbox import FunctionToolBox, ToolBox, tool
from ai_ox.tools.toolset import ToolSet
from ai_ox.tools.types import FunctionMetadata, Tool, ToolCall, ToolResult

__all__ = [
    # Types
    "FunctionMetadata",
    "Tool",
    "ToolCall",
    "ToolResult",
    # Toolboxes
    "FunctionToolBox",
    "ToolBox",
    "ToolSet",
    "tool",
    # Schema
    "clean_json_schema",
    "inline_refs",
    "schema_for_type",
    # Errors
    "ToolError",
    "ToolExecutionError",
    "ToolInputError",
    "ToolInternalError",
    "ToolNotFoundError",
    "ToolOutputError",
]
