"""Tool registry and dispatcher.

Every dispatch returns a ToolResult. Exceptions never cross this boundary, so
a failing source becomes information the model can reason about.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List

from errors import ErrorKind, PlannerError
from llm.base_client import ToolCall
from .tools import Tool, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Fixed mapping from tool name to tool."""

    def __init__(self, tools: List[Tool], max_workers: int = 4):
        """
        Args:
            tools: Tools to register; names must be unique
            max_workers: Upper bound on concurrently executing calls
        """
        self.tools: Dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self.tools:
                raise ValueError(f"Duplicate tool name: {tool.name}")
            self.tools[tool.name] = tool
        self.max_workers = max(1, max_workers)

    def definitions(self) -> List[Dict]:
        return [tool.get_definition() for tool in self.tools.values()]

    def catalogue(self) -> str:
        """One line per tool, for the opening prompt."""
        return "\n".join(
            f"- {tool.name}: {tool.description}" for tool in self.tools.values()
        )

    def dispatch(self, call: ToolCall) -> ToolResult:
        """Execute one call. Never raises."""
        tool = self.tools.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool: {call.name}")
            return ToolResult.failure(
                call.id, call.name, ErrorKind.UNKNOWN_TOOL, f"Unknown tool: {call.name}"
            )

        if call.argument_error:
            logger.warning(f"Tool {call.name} called with malformed arguments: {call.argument_error}")
            return ToolResult.failure(
                call.id, call.name, ErrorKind.MALFORMED_INPUT, call.argument_error
            )

        arguments = call.arguments if isinstance(call.arguments, dict) else {}
        try:
            tool.validate(arguments)
            data = tool.execute(**arguments)
            logger.info(f"Tool {call.name} succeeded")
            return ToolResult.success(call.id, call.name, data)
        except PlannerError as e:
            logger.warning(f"Tool {call.name} failed ({e.kind.value}): {e.message}")
            return ToolResult.failure(call.id, call.name, e.kind, e.message)
        except Exception as e:
            logger.error(f"Tool {call.name} raised unexpectedly: {e}")
            return ToolResult.failure(call.id, call.name, ErrorKind.INTERNAL_ERROR, str(e))

    def dispatch_all(self, calls: List[ToolCall]) -> List[ToolResult]:
        """
        Execute a batch of independent calls.

        Calls run concurrently when there is more than one; results come back
        in request order regardless of completion order.
        """
        if len(calls) <= 1 or self.max_workers == 1:
            return [self.dispatch(call) for call in calls]

        results: Dict[int, ToolResult] = {}
        max_workers = min(len(calls), self.max_workers)
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            futures = {pool.submit(self.dispatch, call): idx for idx, call in enumerate(calls)}
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        return [results[i] for i in range(len(calls))]
