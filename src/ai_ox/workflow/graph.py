"""
Workflow - runs nodes as a finite state machine.

Starting from the initial node, each node's `run` picks the next node
until one returns End.
"""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from ai_ox.workflow.context import RunContext
from ai_ox.workflow.errors import MaxStepsExceededError, NodeExecutionError, WorkflowError
from ai_ox.workflow.node import End, Node

logger = logging.getLogger(__name__)

StateT = TypeVar("StateT")
DepsT = TypeVar("DepsT")


class Workflow(Generic[StateT, DepsT]):
    """
    A graph of nodes sharing one RunContext.

    Example:
        workflow = Workflow(Fetch(), state=State(), deps=client)
        output = await workflow.run()
    """

    def __init__(
        self,
        initial_node: Node,
        state: StateT,
        deps: DepsT = None,
        max_steps: int | None = None,
    ):
        """
        Initialize the workflow.

        Args:
            initial_node: First node to run
            state: Mutable state shared by all nodes
            deps: Dependencies available to nodes
            max_steps: Maximum number of nodes to run, unlimited if None
        """
        self.initial_node = initial_node
        self.max_steps = max_steps
        self._context: RunContext[StateT, DepsT] = RunContext(state, deps)

    @property
    def context(self) -> RunContext[StateT, DepsT]:
        return self._context

    @property
    def state(self) -> StateT:
        return self._context.state

    async def run(self) -> Any:
        """
        Execute nodes until one returns End.

        Returns:
            The output carried by End

        Raises:
            NodeExecutionError: If a node raises
            MaxStepsExceededError: If max_steps is exceeded
        """
        node = self.initial_node
        steps = 0

        while True:
            if self.max_steps is not None and steps >= self.max_steps:
                raise MaxStepsExceededError(self.max_steps)
            steps += 1

            logger.debug(f"Workflow step {steps}: {node.name}")
            try:
                result = await node.run(self._context)
            except WorkflowError:
                raise
            except Exception as e:
                raise NodeExecutionError(node.name, str(e)) from e

            if isinstance(result, End):
                logger.debug(f"Workflow finished after {steps} step(s)")
                return result.output
            if not isinstance(result, Node):
                raise NodeExecutionError(
                    node.name, f"returned {type(result).__name__}, expected Node or End"
                )
            node = result
