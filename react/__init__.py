"""Tool-use loop for the planning phase."""

from .tools import (
    Tool,
    ToolError,
    ToolResult,
    ListConversationsTool,
    ListConversationMessagesTool,
    build_source_tools,
)
from .registry import ToolRegistry
from .loop import PlanningLoop, LoopResult, LoopState

__all__ = [
    "Tool",
    "ToolError",
    "ToolResult",
    "ListConversationsTool",
    "ListConversationMessagesTool",
    "build_source_tools",
    "ToolRegistry",
    "PlanningLoop",
    "LoopResult",
    "LoopState",
]
