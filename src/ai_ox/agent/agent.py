"""
Agent - a model plus tools, running the tool-calling loop.

The agent sends the conversation to the model, executes any tool calls it
returns, appends the results and repeats until the model answers without
calling tools.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import AsyncIterator, Iterable
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError

from ai_ox.agent.errors import (
    AgentNoResponseError,
    AgentResponseParsingError,
    AgentToolError,
    MaxIterationsReachedError,
    ToolCallsWithoutToolsError,
)
from ai_ox.agent.events import (
    AgentEvent,
    Completed,
    Failed,
    Started,
    StreamEventReceived,
    ToolExecution,
    ToolResultReceived,
)
from ai_ox.config import get_settings
from ai_ox.content.delta import StreamStop, TextDelta, ToolCallEvent
from ai_ox.content.message import Message, MessageRole, to_messages
from ai_ox.content.part import Part, TextPart
from ai_ox.errors import UnsupportedFeatureError
from ai_ox.models.base import Model, ModelRequest, ModelResponse, StructuredResponse
from ai_ox.tools.errors import ToolError
from ai_ox.tools.schema import schema_for_type
from ai_ox.tools.toolbox import ToolBox
from ai_ox.tools.toolset import ToolSet
from ai_ox.tools.types import ToolCall, ToolResult
from ai_ox.usage import Usage

logger = logging.getLogger(__name__)

T = TypeVar("T")

MessagesInput = Iterable[Message | str | dict[str, Any]] | Message | str

_CODE_FENCE_RE = re.compile(r"^```[\w-]*\s*\n?(.*?)\n?```$", re.DOTALL)


def _strip_code_fence(text: str) -> str:
    stripped = text.strip()
    match = _CODE_FENCE_RE.match(stripped)
    return match.group(1).strip() if match else stripped


def _tool_results_message(results: list[ToolResult]) -> Message:
    return Message(role=MessageRole.USER, content=[r.to_part() for r in results])


class Agent:
    """
    Orchestrates a model and its tools.

    Example:
        agent = Agent(OpenAIModel("gpt-4.1-mini"), tools=WeatherTools())
        response = await agent.run("What's the weather in Oslo?")
    """

    def __init__(
        self,
        model: Model,
        tools: ToolBox | None = None,
        system_instruction: str | None = None,
        max_iterations: int | None = None,
    ):
        """
        Initialize the agent.

        Args:
            model: Model used for every request
            tools: Toolbox whose functions the model may call
            system_instruction: System prompt sent with every request
            max_iterations: Maximum model calls per run, defaults to settings
        """
        self.model = model
        self.tools = tools
        self._system_instruction = system_instruction
        self.max_iterations = (
            max_iterations if max_iterations is not None else get_settings().agent.max_iterations
        )

    @property
    def system_instruction(self) -> str | None:
        return self._system_instruction

    def set_system_instruction(self, instruction: str) -> None:
        self._system_instruction = instruction

    def clear_system_instruction(self) -> None:
        self._system_instruction = None

    def add_tools(self, toolbox: ToolBox) -> None:
        """Add a toolbox, combining it with any existing tools."""
        if self.tools is None:
            self.tools = toolbox
        elif isinstance(self.tools, ToolSet):
            self.tools.add_toolbox(toolbox)
        else:
            self.tools = ToolSet([self.tools, toolbox])

    def _build_request(self, messages: list[Message]) -> ModelRequest:
        system_message = (
            Message.system(self._system_instruction) if self._system_instruction else None
        )
        tools = self.tools.tools() if self.tools is not None else None
        return ModelRequest(messages=list(messages), system_message=system_message, tools=tools or None)

    async def _request(self, messages: list[Message], iteration: int = 1) -> ModelResponse:
        logger.debug(f"Agent request to {self.model.info} (iteration {iteration})")
        return await self.model.request(self._build_request(messages))

    async def _invoke(self, toolbox: ToolBox, call: ToolCall) -> ToolResult:
        try:
            return await toolbox.invoke(call)
        except ToolError as e:
            logger.warning(f"Tool '{call.name}' failed: {e}")
            raise AgentToolError(call.name, str(e)) from e

    async def _execute_tools(self, calls: list[ToolCall]) -> list[ToolResult]:
        """
        Run tool calls concurrently, returning results in call order.

        The first failure cancels the remaining calls and is raised as is.
        """
        toolbox = self.tools
        if toolbox is None:
            raise ToolCallsWithoutToolsError()
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(self._invoke(toolbox, call)) for call in calls]
        except ExceptionGroup as e:
            raise e.exceptions[0]
        return [task.result() for task in tasks]

    async def generate(self, messages: MessagesInput) -> ModelResponse:
        """Make a single model call without executing tools."""
        return await self._request(to_messages(messages))

    async def run(self, messages: MessagesInput) -> ModelResponse:
        """
        Run the tool-calling loop until the model stops calling tools.

        Args:
            messages: Conversation so far

        Returns:
            Final response, with usage summed over every model call

        Raises:
            MaxIterationsReachedError: If the loop does not finish in time
            ToolCallsWithoutToolsError: If tools are requested but none exist
            AgentToolError: If a tool invocation fails
        """
        history = to_messages(messages)
        total_usage = Usage()

        for iteration in range(1, self.max_iterations + 1):
            response = await self._request(history, iteration)
            total_usage += response.usage
            history.append(response.message)

            calls = response.tool_calls()
            if not calls:
                response.usage = total_usage
                return response

            logger.debug(f"Executing {len(calls)} tool call(s): {[c.name for c in calls]}")
            results = await self._execute_tools(calls)
            history.append(_tool_results_message(results))

        raise MaxIterationsReachedError(self.max_iterations)

    def _parse_typed(self, text: str, adapter: TypeAdapter[T], schema: dict[str, Any]) -> T:
        try:
            return adapter.validate_json(_strip_code_fence(text))
        except ValidationError as e:
            raise AgentResponseParsingError(str(e), text, schema) from e

    async def generate_typed(
        self, messages: MessagesInput, output_type: type[T]
    ) -> StructuredResponse[T]:
        """
        Generate output parsed into `output_type`.

        Uses the model's structured output mode, falling back to parsing
        the text of a plain response when the model has none.

        Raises:
            AgentResponseParsingError: If the output does not validate
            AgentNoResponseError: If the model returns no text
        """
        history = to_messages(messages)
        schema = schema_for_type(output_type)
        adapter: TypeAdapter[T] = TypeAdapter(output_type)

        try:
            raw = await self.model.request_structured(self._build_request(history), schema)
        except UnsupportedFeatureError:
            logger.debug(f"{self.model.info} has no structured output, parsing text")
        else:
            try:
                data = adapter.validate_python(raw.json)
            except ValidationError as e:
                raise AgentResponseParsingError(str(e), json.dumps(raw.json), schema) from e
            return StructuredResponse(
                data=data,
                model_name=raw.model_name,
                vendor_name=raw.vendor_name,
                usage=raw.usage,
            )

        response = await self._request(history)
        if not response.text:
            raise AgentNoResponseError()
        return StructuredResponse(
            data=self._parse_typed(response.text, adapter, schema),
            model_name=response.model_name,
            vendor_name=response.vendor_name,
            usage=response.usage,
        )

    async def execute_typed(
        self, messages: MessagesInput, output_type: type[T]
    ) -> StructuredResponse[T]:
        """Run the tool loop if tools are present, then parse the final text."""
        if self.tools is None:
            return await self.generate_typed(messages, output_type)

        schema = schema_for_type(output_type)
        adapter: TypeAdapter[T] = TypeAdapter(output_type)

        response = await self.run(messages)
        if not response.text:
            raise AgentNoResponseError()
        return StructuredResponse(
            data=self._parse_typed(response.text, adapter, schema),
            model_name=response.model_name,
            vendor_name=response.vendor_name,
            usage=response.usage,
        )

    async def stream(self, messages: MessagesInput) -> AsyncIterator[AgentEvent]:
        """
        Run the tool loop, streaming model output and tool activity.

        Agent-level failures are reported as a final Failed event; model
        errors propagate. The Completed response carries usage summed over
        every model call.
        """
        history = to_messages(messages)
        total_usage = Usage()
        yield Started()

        for iteration in range(1, self.max_iterations + 1):
            logger.debug(f"Agent stream to {self.model.info} (iteration {iteration})")
            texts: list[str] = []
            calls: list[ToolCall] = []
            stop: StreamStop | None = None

            async for event in self.model.request_stream(self._build_request(history)):
                yield StreamEventReceived(event)
                if isinstance(event, TextDelta):
                    texts.append(event.text)
                elif isinstance(event, ToolCallEvent):
                    calls.append(event.call)
                elif isinstance(event, StreamStop):
                    stop = event

            if stop is None:
                yield Failed("Model stream ended without a stop event")
                return
            total_usage += stop.usage

            content: list[Part] = [TextPart(text="".join(texts))] if texts else []
            content.extend(call.to_part() for call in calls)
            message = Message(role=MessageRole.ASSISTANT, content=content)
            history.append(message)

            if not calls:
                yield Completed(
                    ModelResponse(
                        message=message,
                        model_name=self.model.name,
                        vendor_name=self.model.info.provider,
                        usage=total_usage,
                        finish_reason=stop.finish_reason,
                    )
                )
                return

            for call in calls:
                yield ToolExecution(call)

            try:
                results = await self._execute_tools(calls)
            except (ToolCallsWithoutToolsError, AgentToolError) as e:
                yield Failed(str(e))
                return

            for result in results:
                yield ToolResultReceived(result)
            history.append(_tool_results_message(results))

        yield Failed(str(MaxIterationsReachedError(self.max_iterations)))
