"""Tests for tools, toolboxes and schema helpers."""

import json

import pytest
from pydantic import BaseModel

from ai_ox.content.part import TextPart, ToolResultPart
from ai_ox.tools import (
    FunctionToolBox,
    ToolCall,
    ToolExecutionError,
    ToolInputError,
    ToolNotFoundError,
    ToolOutputError,
    ToolResult,
    ToolSet,
    clean_json_schema,
    schema_for_type,
    tool,
)


class Address(BaseModel):
    city: str
    zip_code: str | None = None


class Person(BaseModel):
    name: str
    address: Address


def get_weather(city: str, unit: str = "celsius") -> str:
    """Get the current weather for a city.

    Returns a short human readable summary.
    """
    return f"Sunny in {city} ({unit})"


async def lookup_person(name: str) -> Person:
    """Look up a person by name."""
    return Person(name=name, address=Address(city="Oslo"))


def ping() -> None:
    """Check connectivity."""
    return None


def failing(reason: str) -> str:
    """Always fails."""
    raise RuntimeError(reason)


def unserializable() -> object:
    """Returns something that is not JSON."""
    return object()


class MathTools(FunctionToolBox):
    """Toolbox exposing decorated methods."""

    def __init__(self, offset: int = 0):
        self.offset = offset
        super().__init__()

    @tool
    def add(self, a: int, b: int) -> int:
        """Add two numbers."""
        return a + b + self.offset

    @tool(name="multiply_numbers", description="Multiply two numbers")
    async def multiply(self, a: int, b: int) -> int:
        return a * b

    def helper(self) -> int:
        return 1


class TestSchemaForType:
    """Tests for JSON schema generation."""

    def test_inlines_definitions(self):
        """Should inline nested models and drop $defs."""
        schema = schema_for_type(Person)

        assert "$defs" not in schema
        assert schema["properties"]["address"]["type"] == "object"
        assert "city" in schema["properties"]["address"]["properties"]

    def test_strips_titles(self):
        """Should remove generated titles."""
        schema = schema_for_type(Person)

        assert "title" not in schema
        assert "title" not in schema["properties"]["name"]

    def test_keeps_property_named_title(self):
        """Should not drop properties that happen to be called title."""

        class Book(BaseModel):
            title: str

        schema = schema_for_type(Book)

        assert "title" in schema["properties"]

    def test_empty_model(self):
        """Should produce an empty object schema."""

        class Empty(BaseModel):
            pass

        assert schema_for_type(Empty) == {"type": "object", "properties": {}}


class TestCleanJsonSchema:
    """Tests for Gemini schema cleanup."""

    def test_removes_unsupported_keys(self):
        """Should drop keywords Gemini rejects."""
        schema = {
            "$schema": "http://json-schema.org/draft-07/schema#",
            "type": "object",
            "additionalProperties": False,
            "properties": {"n": {"type": "integer", "exclusiveMinimum": 0, "default": 1}},
        }

        cleaned = clean_json_schema(schema)

        assert cleaned == {"type": "object", "properties": {"n": {"type": "integer"}}}

    def test_nullable_any_of(self):
        """Should collapse anyOf with null into nullable."""
        schema = {"anyOf": [{"type": "string"}, {"type": "null"}], "description": "zip"}

        cleaned = clean_json_schema(schema)

        assert cleaned == {"type": "string", "nullable": True, "description": "zip"}

    def test_type_array_with_null(self):
        """Should collapse type arrays into a single type plus nullable."""
        cleaned = clean_json_schema({"type": ["integer", "null"]})

        assert cleaned == {"type": "integer", "nullable": True}

    def test_inlines_refs(self):
        """Should resolve $ref before cleaning."""
        schema = {
            "type": "object",
            "properties": {"a": {"$ref": "#/$defs/A"}},
            "$defs": {"A": {"type": "object", "properties": {"x": {"type": "string"}}}},
        }

        cleaned = clean_json_schema(schema)

        assert cleaned["properties"]["a"] == {
            "type": "object",
            "properties": {"x": {"type": "string"}},
        }

    def test_validation_moves_to_description(self):
        """Should append validation constraints to the description."""
        cleaned = clean_json_schema({"type": "string", "description": "Code", "maxLength": 3})

        assert cleaned == {"type": "string", "description": "Code (maxLength: 3)"}

    def test_adds_object_type(self):
        """Should add type object when properties are present."""
        cleaned = clean_json_schema({"properties": {"a": {"type": "string"}}})

        assert cleaned["type"] == "object"


class TestFunctionToolBox:
    """Tests for function-backed toolboxes."""

    def test_declarations_from_signature(self):
        """Should build parameters and description from the function."""
        toolbox = FunctionToolBox(get_weather)

        [declaration] = toolbox.tools()[0].function_declarations

        assert declaration.name == "get_weather"
        assert declaration.description == "Get the current weather for a city."
        assert declaration.parameters["type"] == "object"
        assert declaration.parameters["required"] == ["city"]
        assert declaration.parameters["properties"]["unit"]["default"] == "celsius"
        assert "title" not in declaration.parameters["properties"]["city"]

    def test_no_parameters(self):
        """Should declare an empty object schema for parameterless tools."""
        toolbox = FunctionToolBox(ping)

        [declaration] = toolbox.tools()[0].function_declarations

        assert declaration.parameters == {"type": "object", "properties": {}}

    def test_empty_toolbox(self):
        """Should advertise no tools when empty."""
        assert FunctionToolBox().tools() == []

    def test_duplicate_names_rejected(self):
        """Should refuse two tools with the same name."""
        with pytest.raises(ValueError, match="already registered"):
            FunctionToolBox(get_weather, get_weather)

    def test_has_function(self):
        """Should report registered function names."""
        toolbox = FunctionToolBox(get_weather)

        assert toolbox.has_function("get_weather")
        assert not toolbox.has_function("other")

    @pytest.mark.asyncio
    async def test_invoke_sync_function(self):
        """Should call sync functions and return text results."""
        toolbox = FunctionToolBox(get_weather)

        result = await toolbox.invoke(ToolCall(id="c1", name="get_weather", args={"city": "Oslo"}))

        assert result == ToolResult(id="c1", name="get_weather", parts=[TextPart(text="Sunny in Oslo (celsius)")])

    @pytest.mark.asyncio
    async def test_invoke_async_function_returns_json(self):
        """Should await coroutines and serialize models as JSON."""
        toolbox = FunctionToolBox(lookup_person)

        result = await toolbox.invoke(ToolCall(id="c1", name="lookup_person", args={"name": "Ada"}))

        data = json.loads(result.parts[0].text)
        assert data == {"name": "Ada", "address": {"city": "Oslo", "zip_code": None}}

    @pytest.mark.asyncio
    async def test_none_result_has_no_parts(self):
        """Should return an empty part list for None."""
        toolbox = FunctionToolBox(ping)

        result = await toolbox.invoke(ToolCall(id="c1", name="ping"))

        assert result.parts == []

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """Should raise ToolNotFoundError."""
        toolbox = FunctionToolBox(ping)

        with pytest.raises(ToolNotFoundError, match="Tool not found: nope"):
            await toolbox.invoke(ToolCall(id="c1", name="nope"))

    @pytest.mark.asyncio
    async def test_invalid_arguments(self):
        """Should raise ToolInputError chained to the validation error."""
        toolbox = FunctionToolBox(get_weather)

        with pytest.raises(ToolInputError) as exc_info:
            await toolbox.invoke(ToolCall(id="c1", name="get_weather", args={}))

        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_execution_failure(self):
        """Should wrap exceptions raised by the tool."""
        toolbox = FunctionToolBox(failing)

        with pytest.raises(ToolExecutionError) as exc_info:
            await toolbox.invoke(ToolCall(id="c1", name="failing", args={"reason": "boom"}))

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert str(exc_info.value.__cause__) == "boom"

    @pytest.mark.asyncio
    async def test_output_failure(self):
        """Should raise ToolOutputError for unserializable results."""
        toolbox = FunctionToolBox(unserializable)

        with pytest.raises(ToolOutputError):
            await toolbox.invoke(ToolCall(id="c1", name="unserializable"))


class TestDecoratedMethods:
    """Tests for @tool methods on FunctionToolBox subclasses."""

    def test_collects_decorated_methods(self):
        """Should expose only decorated methods."""
        toolbox = MathTools()

        names = toolbox.tools()[0].function_names()

        assert sorted(names) == ["add", "multiply_numbers"]
        assert not toolbox.has_function("helper")

    def test_decorator_overrides(self):
        """Should use the decorator's name and description."""
        declarations = {d.name: d for d in MathTools().tools()[0].function_declarations}

        assert declarations["multiply_numbers"].description == "Multiply two numbers"
        assert "self" not in declarations["add"].parameters["properties"]

    @pytest.mark.asyncio
    async def test_invoke_bound_method(self):
        """Should call methods bound to the toolbox instance."""
        toolbox = MathTools(offset=10)

        result = await toolbox.invoke(ToolCall(id="c1", name="add", args={"a": 1, "b": 2}))

        assert result.parts == [TextPart(text="13")]

    @pytest.mark.asyncio
    async def test_invoke_async_method(self):
        """Should await async methods."""
        result = await MathTools().invoke(
            ToolCall(id="c1", name="multiply_numbers", args={"a": 3, "b": 4})
        )

        assert result.parts == [TextPart(text="12")]


class TestToolSet:
    """Tests for composing toolboxes."""

    def test_collects_all_tools(self):
        """Should return tools from every toolbox."""
        toolset = ToolSet().with_toolbox(FunctionToolBox(ping)).with_toolbox(MathTools())

        assert len(toolset) == 2
        assert len(toolset.get_all_tools()) == 2
        assert toolset.has_function("add")

    @pytest.mark.asyncio
    async def test_routes_to_owner(self):
        """Should invoke the toolbox that declares the function."""
        toolset = ToolSet([FunctionToolBox(get_weather), MathTools()])

        result = await toolset.invoke(ToolCall(id="c1", name="add", args={"a": 2, "b": 2}))

        assert result.parts == [TextPart(text="4")]

    @pytest.mark.asyncio
    async def test_unknown_function(self):
        """Should raise ToolNotFoundError when no toolbox matches."""
        with pytest.raises(ToolNotFoundError):
            await ToolSet([FunctionToolBox(ping)]).invoke(ToolCall(id="c1", name="missing"))


class TestToolTypes:
    """Tests for tool call and result conversion."""

    def test_result_to_part(self):
        """Should convert results into tool result parts."""
        part = ToolResult.text("c1", "f", "done").to_part()

        assert part == ToolResultPart(id="c1", name="f", parts=[TextPart(text="done")])

    def test_call_round_trip(self):
        """Should convert calls to and from tool-use parts."""
        call = ToolCall(id="c1", name="f", args={"x": 1})

        assert ToolCall.from_part(call.to_part()) == call
