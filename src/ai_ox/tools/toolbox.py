"""
ToolBox interface and the function-backed implementation.

A toolbox advertises function declarations to the model and executes the
calls the model makes. `FunctionToolBox` builds declarations from plain
Python callables: the parameter schema comes from the signature via
pydantic, the description from the docstring.
"""

from __future__ import annotations

import inspect
import logging
import typing
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError, create_model
from pydantic_core import PydanticSerializationError, to_json

from ai_ox.content.part import Part, TextPart
from ai_ox.tools.errors import (
    ToolExecutionError,
    ToolInputError,
    ToolNotFoundError,
    ToolOutputError,
)
from ai_ox.tools.schema import EMPTY_OBJECT_SCHEMA, schema_for_type
from ai_ox.tools.types import FunctionMetadata, Tool, ToolCall, ToolResult

logger = logging.getLogger(__name__)

_TOOL_ATTR = "__ai_ox_tool__"


class ToolBox(ABC):
    """Something that can advertise and execute tools."""

    @abstractmethod
    def tools(self) -> list[Tool]:
        """Return the tool declarations to send with model requests."""
        pass

    @abstractmethod
    async def invoke(self, call: ToolCall) -> ToolResult:
        """
        Execute a tool call.

        Args:
            call: The call requested by the model

        Returns:
            ToolResult answering the call

        Raises:
            ToolError: If the tool is unknown or fails
        """
        pass

    def has_function(self, name: str) -> bool:
        return any(name in t.function_names() for t in self.tools())


@dataclass(frozen=True)
class _ToolMarker:
    name: str | None
    description: str | None


def tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
) -> Any:
    """
    Mark a function or method as a tool.

    Usable bare (`@tool`) or with overrides (`@tool(name="lookup")`).
    """

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        setattr(fn, _TOOL_ATTR, _ToolMarker(name=name, description=description))
        return fn

    if func is not None:
        return decorator(func)
    return decorator


def _docstring_summary(fn: Callable[..., Any]) -> str | None:
    doc = inspect.getdoc(fn)
    if not doc:
        return None
    first = doc.strip().split("\n\n", 1)[0]
    return " ".join(line.strip() for line in first.splitlines())


def _serialize_output(name: str, value: Any) -> list[Part]:
    if value is None:
        return []
    if isinstance(value, str):
        return [TextPart(text=value)]
    try:
        if isinstance(value, BaseModel):
            text = value.model_dump_json()
        else:
            text = to_json(value).decode()
    except (PydanticSerializationError, TypeError, ValueError) as e:
        raise ToolOutputError(name) from e
    return [TextPart(text=text)]


class _FunctionTool:
    """A single callable exposed as a tool."""

    def __init__(self, fn: Callable[..., Any], name: str | None = None, description: str | None = None):
        self.fn = fn
        self.name = name or fn.__name__
        self.description = description or _docstring_summary(fn)
        self.args_model = self._build_args_model()

    def _build_args_model(self) -> type[BaseModel]:
        target = inspect.unwrap(getattr(self.fn, "__func__", self.fn))
        hints = typing.get_type_hints(target)

        fields: dict[str, Any] = {}
        for param in inspect.signature(self.fn).parameters.values():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            annotation = hints.get(param.name, Any)
            default = ... if param.default is param.empty else param.default
            fields[param.name] = (annotation, default)

        model_name = "".join(part.capitalize() for part in self.name.split("_")) + "Args"
        return create_model(model_name, **fields)

    @property
    def metadata(self) -> FunctionMetadata:
        if self.args_model.model_fields:
            parameters = schema_for_type(self.args_model)
        else:
            parameters = dict(EMPTY_OBJECT_SCHEMA)
        return FunctionMetadata(name=self.name, description=self.description, parameters=parameters)

    async def __call__(self, call: ToolCall) -> ToolResult:
        try:
            validated = self.args_model.model_validate(call.args)
        except ValidationError as e:
            raise ToolInputError(self.name) from e

        kwargs = {field: getattr(validated, field) for field in self.args_model.model_fields}

        try:
            result = self.fn(**kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise ToolExecutionError(self.name) from e

        return ToolResult(id=call.id, name=self.name, parts=_serialize_output(self.name, result))


class FunctionToolBox(ToolBox):
    """
    ToolBox backed by Python callables.

    Pass functions to the constructor, or subclass and decorate methods
    with `@tool`; both sources are combined.

    Example:
        class Weather(FunctionToolBox):
            @tool
            async def forecast(self, city: str) -> str:
                \"\"\"Get the forecast for a city.\"\"\"
                ...
    """

    def __init__(self, *functions: Callable[..., Any]):
        self._tools: dict[str, _FunctionTool] = {}

        for attr_name in dir(type(self)):
            attr = getattr(type(self), attr_name, None)
            marker = getattr(attr, _TOOL_ATTR, None)
            if isinstance(marker, _ToolMarker):
                self._add(getattr(self, attr_name), marker)

        for fn in functions:
            marker = getattr(fn, _TOOL_ATTR, None)
            self._add(fn, marker if isinstance(marker, _ToolMarker) else None)

    def _add(self, fn: Callable[..., Any], marker: _ToolMarker | None) -> None:
        func_tool = _FunctionTool(
            fn,
            name=marker.name if marker else None,
            description=marker.description if marker else None,
        )
        if func_tool.name in self._tools:
            raise ValueError(f"Tool '{func_tool.name}' is already registered")
        self._tools[func_tool.name] = func_tool
        logger.debug(f"Registered tool: {func_tool.name}")

    def tools(self) -> list[Tool]:
        if not self._tools:
            return []
        return [Tool(function_declarations=[t.metadata for t in self._tools.values()])]

    def has_function(self, name: str) -> bool:
        return name in self._tools

    async def invoke(self, call: ToolCall) -> ToolResult:
        func_tool = self._tools.get(call.name)
        if func_tool is None:
            raise ToolNotFoundError(call.name)
        return await func_tool(call)
