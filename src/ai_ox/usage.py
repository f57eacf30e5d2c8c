"""
Aggregate usage tracking for model interactions.

Stores only essential data (per-modality counters plus a few optional
totals) and calculates the rest.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ai_ox.common.usage import TokenUsage


class Modality(str, Enum):
    """Content modalities for token counting. Other strings are accepted as keys too."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    DOCUMENT = "document"


def _modality_key(modality: Modality | str) -> str:
    return modality.value if isinstance(modality, Modality) else str(modality).lower()


def _add_maps(lhs: Mapping[str, int], rhs: Mapping[str, int]) -> dict[str, int]:
    merged = dict(lhs)
    for modality, count in rhs.items():
        merged[modality] = merged.get(modality, 0) + count
    return merged


def _add_optional(lhs: int | None, rhs: int | None) -> int | None:
    if lhs is None:
        return rhs
    if rhs is None:
        return lhs
    return lhs + rhs


def _merge_details(lhs: dict[str, Any] | None, rhs: dict[str, Any] | None) -> dict[str, Any] | None:
    if lhs is None:
        return dict(rhs) if rhs is not None else None
    if rhs is None:
        return dict(lhs)
    return {**lhs, **rhs}


@dataclass
class Usage:
    """Usage for one or more model requests."""

    requests: int = 0
    input_tokens_by_modality: dict[str, int] = field(default_factory=dict)
    output_tokens_by_modality: dict[str, int] = field(default_factory=dict)
    cache_tokens_by_modality: dict[str, int] = field(default_factory=dict)
    tool_tokens_by_modality: dict[str, int] = field(default_factory=dict)
    cache_read_tokens: int | None = None
    cache_creation_tokens: int | None = None
    thoughts_tokens: int | None = None
    details: dict[str, Any] | None = None

    @classmethod
    def from_tokens(cls, input_tokens: int, output_tokens: int) -> Usage:
        """Usage for a single text request."""
        return cls(
            requests=1,
            input_tokens_by_modality={Modality.TEXT.value: input_tokens},
            output_tokens_by_modality={Modality.TEXT.value: output_tokens},
        )

    @classmethod
    def from_token_usage(cls, tokens: TokenUsage) -> Usage:
        """Convert raw provider counters into a single-request Usage."""
        usage = cls.from_tokens(tokens.prompt(), tokens.completion())
        usage.cache_read_tokens = tokens.cache_read_tokens
        usage.cache_creation_tokens = tokens.cache_creation_tokens
        usage.thoughts_tokens = tokens.thoughts_tokens
        # Reasoning is already part of completion tokens
        if tokens.reasoning_tokens:
            usage.details = {"reasoning_tokens": tokens.reasoning_tokens}
        if tokens.tool_prompt_tokens:
            usage.tool_tokens_by_modality[Modality.TEXT.value] = tokens.tool_prompt_tokens
        return usage

    def add_input(self, modality: Modality | str, count: int) -> None:
        key = _modality_key(modality)
        self.input_tokens_by_modality[key] = self.input_tokens_by_modality.get(key, 0) + count

    def add_output(self, modality: Modality | str, count: int) -> None:
        key = _modality_key(modality)
        self.output_tokens_by_modality[key] = self.output_tokens_by_modality.get(key, 0) + count

    def input_tokens(self) -> int:
        return sum(self.input_tokens_by_modality.values())

    def output_tokens(self) -> int:
        return sum(self.output_tokens_by_modality.values())

    def cache_tokens(self) -> int:
        return sum(self.cache_tokens_by_modality.values())

    def tool_tokens(self) -> int:
        return sum(self.tool_tokens_by_modality.values())

    def total_tokens(self) -> int:
        """Input + output + thoughts."""
        return self.input_tokens() + self.output_tokens() + (self.thoughts_tokens or 0)

    def effective_input_tokens(self) -> int:
        """Input tokens excluding cache creation, which is billed differently."""
        return max(self.input_tokens() - (self.cache_creation_tokens or 0), 0)

    def total_cache_tokens(self) -> int:
        return (self.cache_read_tokens or 0) + (self.cache_creation_tokens or 0)

    def __add__(self, other: Usage) -> Usage:
        if not isinstance(other, Usage):
            return NotImplemented
        return Usage(
            requests=self.requests + other.requests,
            input_tokens_by_modality=_add_maps(
                self.input_tokens_by_modality, other.input_tokens_by_modality
            ),
            output_tokens_by_modality=_add_maps(
                self.output_tokens_by_modality, other.output_tokens_by_modality
            ),
            cache_tokens_by_modality=_add_maps(
                self.cache_tokens_by_modality, other.cache_tokens_by_modality
            ),
            tool_tokens_by_modality=_add_maps(
                self.tool_tokens_by_modality, other.tool_tokens_by_modality
            ),
            cache_read_tokens=_add_optional(self.cache_read_tokens, other.cache_read_tokens),
            cache_creation_tokens=_add_optional(
                self.cache_creation_tokens, other.cache_creation_tokens
            ),
            thoughts_tokens=_add_optional(self.thoughts_tokens, other.thoughts_tokens),
            details=_merge_details(self.details, other.details),
        )

    def __iadd__(self, other: Usage) -> Usage:
        merged = self + other
        self.__dict__.update(merged.__dict__)
        return self

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "requests": self.requests,
            "input_tokens": self.input_tokens(),
            "output_tokens": self.output_tokens(),
            "total_tokens": self.total_tokens(),
        }
        if self.cache_read_tokens is not None:
            result["cache_read_tokens"] = self.cache_read_tokens
        if self.cache_creation_tokens is not None:
            result["cache_creation_tokens"] = self.cache_creation_tokens
        if self.thoughts_tokens is not None:
            result["thoughts_tokens"] = self.thoughts_tokens
        return result
