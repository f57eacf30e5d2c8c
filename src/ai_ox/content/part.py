"""
Content parts that make up a message.

Parts are a discriminated union on `type`: text, image, file, tool_use and
tool_result. The `ext` maps carry provider-specific extras (signatures,
cache hints) that must survive a round trip through the unified model.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field


class ImageSource(BaseModel):
    """Base64 encoded image data."""

    type: Literal["base64"] = "base64"
    media_type: str
    data: str


class TextPart(BaseModel):
    """Plain text content."""

    type: Literal["text"] = "text"
    text: str
    ext: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_reasoning(self) -> bool:
        """Whether this is model reasoning (Anthropic thinking, Gemini thought)."""
        return bool(
            self.ext.get("anthropic", {}).get("thinking") or self.ext.get("gemini", {}).get("thought")
        )


class ImagePart(BaseModel):
    """Inline image content."""

    type: Literal["image"] = "image"
    source: ImageSource

    @classmethod
    def from_base64(cls, media_type: str, data: str) -> ImagePart:
        return cls(source=ImageSource(media_type=media_type, data=data))


class FilePart(BaseModel):
    """File content referenced by URI."""

    type: Literal["file"] = "file"
    file_uri: str
    mime_type: str
    display_name: str | None = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class ToolUsePart(BaseModel):
    """A request from the model to call a tool."""

    type: Literal["tool_use"] = "tool_use"
    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    ext: dict[str, Any] = Field(default_factory=dict)


class ToolResultPart(BaseModel):
    """The result of a tool execution, answering the tool use with the same id."""

    type: Literal["tool_result"] = "tool_result"
    id: str
    name: str
    parts: list[Part] = Field(default_factory=list)
    ext: dict[str, Any] = Field(default_factory=dict)

    @property
    def text(self) -> str | None:
        texts = [p.text for p in self.parts if isinstance(p, TextPart)]
        return "\n".join(texts) if texts else None


Part = Annotated[
    TextPart | ImagePart | FilePart | ToolUsePart | ToolResultPart,
    Field(discriminator="type"),
]

ToolResultPart.model_rebuild()
