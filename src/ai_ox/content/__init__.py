"""
ai_ox.content - Messages, content parts and stream events.
"""

from ai_ox.content.delta import StreamEvent, StreamStop, TextDelta, ToolCallEvent, UsageEvent
from ai_ox.content.message import Message, MessageRole, to_messages
from ai_ox.content.part import (
    FilePart,
    ImagePart,
    ImageSource,
    Part,
    TextPart,
    ToolResultPart,
    ToolUsePart,
)

__all__ = [
    # Messages
    "Message",
    "MessageRole",
    "to_messages",
    # Parts
    "FilePart",
    "ImagePart",
    "ImageSource",
    "Part",
    "TextPart",
    "ToolResultPart",
    "ToolUsePart",
    # Stream events
    "StreamEvent",
    "StreamStop",
    "TextDelta",
    "ToolCallEvent",
    "UsageEvent",
]
