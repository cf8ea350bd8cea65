"""Pydantic schemas for the context planner."""

from .conversation import ConversationSummary, Message, SenderRole, TimeRange
from .transcript import (
    ContentBlock,
    TextBlock,
    ToolCallBlock,
    ToolResultBlock,
    Transcript,
    Turn,
)

__all__ = [
    "ConversationSummary",
    "Message",
    "SenderRole",
    "TimeRange",
    "ContentBlock",
    "TextBlock",
    "ToolCallBlock",
    "ToolResultBlock",
    "Transcript",
    "Turn",
]
