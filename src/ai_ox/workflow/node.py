"""Workflow nodes and the End marker."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ai_ox.workflow.context import RunContext

OutputT = TypeVar("OutputT")


@dataclass(frozen=True)
class End(Generic[OutputT]):
    """Returned by a node to finish the workflow with `output`."""

    output: OutputT


class Node(ABC):
    """
    A step in a workflow.

    `run` returns the next node to execute, or End to stop.
    """

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def run(self, ctx: RunContext[Any, Any]) -> Node | End[Any]:
        pass
