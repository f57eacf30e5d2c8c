"""Shared state passed to every node of a workflow run."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

StateT = TypeVar("StateT")
DepsT = TypeVar("DepsT")


class RunContext(Generic[StateT, DepsT]):
    """
    Mutable state plus read-only dependencies for a workflow run.

    Nodes that mutate state from concurrent tasks should hold `lock`:

        async with ctx.lock:
            ctx.state.count += 1
    """

    def __init__(self, state: StateT, deps: DepsT):
        self.state = state
        self.deps = deps
        self.lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"RunContext(state={self.state!r}, deps={self.deps!r})"
