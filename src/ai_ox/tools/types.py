"""Tool declarations, calls and results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ai_ox.content.part import Part, TextPart, ToolResultPart, ToolUsePart


@dataclass(frozen=True)
class FunctionMetadata:
    """Metadata for a tool function."""

    name: str
    parameters: dict[str, Any]
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"name": self.name, "parameters": self.parameters}
        if self.description is not None:
            result["description"] = self.description
        return result


@dataclass(frozen=True)
class Tool:
    """A group of function declarations the model may call."""

    function_declarations: list[FunctionMetadata] = field(default_factory=list)

    def function_names(self) -> list[str]:
        return [f.name for f in self.function_declarations]


@dataclass(frozen=True)
class ToolCall:
    """A call to a tool function requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    # Provider extras of the originating part, e.g. Gemini thought signatures
    ext: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_part(cls, part: ToolUsePart) -> ToolCall:
        return cls(id=part.id, name=part.name, args=dict(part.args), ext=dict(part.ext))

    def to_part(self) -> ToolUsePart:
        return ToolUsePart(id=self.id, name=self.name, args=dict(self.args), ext=dict(self.ext))


@dataclass
class ToolResult:
    """The output of a successful tool invocation."""

    id: str
    name: str
    parts: list[Part] = field(default_factory=list)

    @classmethod
    def text(cls, id: str, name: str, text: str) -> ToolResult:
        return cls(id=id, name=name, parts=[TextPart(text=text)])

    def to_part(self) -> ToolResultPart:
        return ToolResultPart(id=self.id, name=self.name, parts=list(self.parts))
