"""Personal-data source connectors."""

from .base import BaseConnector, format_date, parse_timestamp
from .tree import construct_tree, format_messages, linearize_messages, message_text
from .imessage import IMessageConnector, parse_transcript
from .session import SessionProvider, FileSessionProvider
from .claude_ai import ClaudeAIConnector

__all__ = [
    "BaseConnector",
    "format_date",
    "parse_timestamp",
    "construct_tree",
    "format_messages",
    "linearize_messages",
    "message_text",
    "IMessageConnector",
    "parse_transcript",
    "SessionProvider",
    "FileSessionProvider",
    "ClaudeAIConnector",
]
