"""Normalised token usage information shared across providers."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any


def _add_optional(lhs: int | None, rhs: int | None) -> int | None:
    if lhs is None:
        return rhs
    if rhs is None:
        return lhs
    return lhs + rhs


@dataclass
class TokenUsage:
    """Raw token counters as reported by a provider. Missing counters stay None."""

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None
    cache_creation_tokens: int | None = None
    cache_read_tokens: int | None = None
    reasoning_tokens: int | None = None
    tool_prompt_tokens: int | None = None
    thoughts_tokens: int | None = None

    @classmethod
    def with_prompt_completion(cls, prompt: int, completion: int) -> TokenUsage:
        return cls(
            prompt_tokens=prompt,
            completion_tokens=completion,
            total_tokens=prompt + completion,
        )

    def prompt(self) -> int:
        return self.prompt_tokens or 0

    def completion(self) -> int:
        return self.completion_tokens or 0

    def total(self) -> int:
        """Explicit total if reported, otherwise prompt + completion (+ thoughts)."""
        if self.total_tokens is not None:
            return self.total_tokens
        if self.prompt_tokens is None or self.completion_tokens is None:
            return 0
        return self.prompt_tokens + self.completion_tokens + (self.thoughts_tokens or 0)

    def merge(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            **{
                f.name: _add_optional(getattr(self, f.name), getattr(other, f.name))
                for f in fields(self)
            }
        )

    def __add__(self, other: TokenUsage) -> TokenUsage:
        return self.merge(other)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}
