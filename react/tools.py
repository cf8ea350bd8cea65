"""Tools exposing connector operations to the planning model."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from pydantic import BaseModel

from connectors.base import BaseConnector
from errors import ErrorKind, MalformedInput
from schemas.conversation import TimeRange

logger = logging.getLogger(__name__)


class ToolError(BaseModel):
    """Structured failure reported back to the model."""
    kind: ErrorKind
    message: str


class ToolResult(BaseModel):
    """Result from tool execution: either data or an error, never both."""
    call_id: str
    tool_name: str
    ok: bool
    data: Any = None
    error: Optional[ToolError] = None

    @classmethod
    def success(cls, call_id: str, tool_name: str, data: Any) -> "ToolResult":
        return cls(call_id=call_id, tool_name=tool_name, ok=True, data=data)

    @classmethod
    def failure(cls, call_id: str, tool_name: str, kind: ErrorKind, message: str) -> "ToolResult":
        return cls(
            call_id=call_id,
            tool_name=tool_name,
            ok=False,
            error=ToolError(kind=kind, message=message)
        )

    def payload(self) -> Dict[str, Any]:
        """The JSON body the model sees."""
        if self.ok:
            return {"ok": True, "data": self.data}
        return {"ok": False, "error": self.error.model_dump(mode="json")}


class Tool(ABC):
    """Abstract base class for tools."""
    name: str
    description: str
    parameters: Dict[str, Any]

    @abstractmethod
    def execute(self, **kwargs) -> Any:
        """
        Execute the tool with validated arguments.

        Returns JSON-serialisable data. Connector errors propagate as
        PlannerError subclasses; the registry turns them into ToolResults.
        """
        pass

    def validate(self, arguments: Dict[str, Any]) -> None:
        """Check required arguments are present and non-empty."""
        for field in self.parameters.get("required", []):
            value = arguments.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise MalformedInput(f"Missing required argument: {field}")

    def get_definition(self) -> Dict:
        """Get OpenAI-compatible tool definition."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters
            }
        }


def _parse_range(start_date: Optional[str], end_date: Optional[str]) -> TimeRange:
    try:
        return TimeRange.from_iso_dates(start_date, end_date)
    except (TypeError, ValueError) as e:
        raise MalformedInput(
            f"Dates must be ISO calendar dates (YYYY-MM-DD): {e}"
        ) from e


class ListConversationsTool(Tool):
    """List a source's conversations active within a date range."""

    def __init__(self, connector: BaseConnector, label: str):
        """
        Args:
            connector: Source connector
            label: Human-readable source name for the description
        """
        self.connector = connector
        self.name = f"{connector.name}_get_conversations"
        self.description = (
            f"Get {label} conversations within a specific date range. "
            "Returns conversation metadata including participants and message counts."
        )
        self.parameters = {
            "type": "object",
            "properties": {
                "start_date": {
                    "type": "string",
                    "description": "Start date in ISO format (YYYY-MM-DD)"
                },
                "end_date": {
                    "type": "string",
                    "description": "End date in ISO format (YYYY-MM-DD)"
                }
            },
            "required": ["start_date", "end_date"]
        }

    def execute(self, start_date: str, end_date: str, **_: Any) -> Dict[str, Any]:
        time_range = _parse_range(start_date, end_date)
        conversations = self.connector.list_conversations(time_range)
        return {
            "conversations": [c.model_dump(mode="json") for c in conversations],
            "count": len(conversations),
            "date_range": f"{start_date} to {end_date}"
        }


class ListConversationMessagesTool(Tool):
    """List the messages of one conversation, optionally within a date range."""

    def __init__(
        self,
        connector: BaseConnector,
        label: str,
        max_messages: Optional[int] = None
    ):
        """
        Args:
            connector: Source connector
            label: Human-readable source name for the description
            max_messages: Keep only the most recent N messages (default: all)
        """
        self.connector = connector
        self.max_messages = max_messages
        self.name = f"{connector.name}_get_conversation_messages"
        self.description = (
            f"Get messages from a specific {label} conversation, optionally within a date range. "
            "Returns individual messages with sender, timestamp, and content."
        )
        self.parameters = {
            "type": "object",
            "properties": {
                "conversation_id": {
                    "type": "string",
                    "description": "The conversation identifier"
                },
                "start_date": {
                    "type": "string",
                    "description": "Optional start date in ISO format (YYYY-MM-DD)"
                },
                "end_date": {
                    "type": "string",
                    "description": "Optional end date in ISO format (YYYY-MM-DD)"
                }
            },
            "required": ["conversation_id"]
        }

    def execute(
        self,
        conversation_id: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        **_: Any
    ) -> Dict[str, Any]:
        time_range = None
        if start_date or end_date:
            time_range = _parse_range(start_date, end_date)

        messages = self.connector.list_messages(conversation_id, time_range)
        total = len(messages)
        truncated = self.max_messages is not None and total > self.max_messages
        if truncated:
            messages = messages[-self.max_messages:]

        result = {
            "messages": [m.model_dump(mode="json") for m in messages],
            "count": len(messages),
            "conversation_id": conversation_id
        }
        if truncated:
            result["truncated"] = True
            result["total_count"] = total
        return result


def build_source_tools(
    connector: BaseConnector,
    label: str,
    max_messages: Optional[int] = None
) -> List[Tool]:
    """The listing and message tools for one source."""
    return [
        ListConversationsTool(connector, label),
        ListConversationMessagesTool(connector, label, max_messages=max_messages),
    ]
