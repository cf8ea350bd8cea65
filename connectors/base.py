"""Connector capability: the contract every personal-data source implements."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional, Union

from schemas.conversation import ConversationSummary, Message, TimeRange

logger = logging.getLogger(__name__)


def format_date(moment: datetime) -> str:
    """Format as YYYY-MM-DD for commands and APIs."""
    return moment.strftime("%Y-%m-%d")


def parse_timestamp(value: Union[str, int, float, datetime]) -> datetime:
    """
    Parse a timestamp into a naive local datetime.

    Accepts ISO strings (a trailing "Z" is understood), datetimes and Unix
    epochs in seconds or milliseconds. Timezone-aware values are converted to
    local time so they compare against naive ranges.

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, (int, float)):
        seconds = value if value < 10_000_000_000 else value / 1000
        moment = datetime.fromtimestamp(seconds)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")

    if moment.tzinfo is not None:
        moment = moment.astimezone().replace(tzinfo=None)
    return moment


class BaseConnector(ABC):
    """Read-only access to conversations from one personal-data source."""

    name: str = "base"

    @abstractmethod
    def list_conversations(self, time_range: TimeRange) -> List[ConversationSummary]:
        """
        List conversations whose last activity falls inside the range.

        Bounds are inclusive. The result is unordered. An empty range yields
        an empty list.

        Raises:
            DataSourceUnavailable: Source could not be read
            AuthenticationExpired: Source rejected the session
        """
        pass

    @abstractmethod
    def list_messages(
        self,
        conversation_id: str,
        time_range: Optional[TimeRange] = None
    ) -> List[Message]:
        """
        List messages of one conversation, oldest first.

        Without a range every available message is returned. An unknown
        conversation id yields an empty list.
        """
        pass

    def get_recent_messages(self, days: int = 7) -> List[Message]:
        """All messages from conversations active in the last `days` days, newest first."""
        end = datetime.now()
        time_range = TimeRange(start=end - timedelta(days=days), end=end)

        all_messages: List[Message] = []
        for conversation in self.list_conversations(time_range):
            all_messages.extend(self.list_messages(conversation.id, time_range))

        all_messages.sort(key=lambda m: m.timestamp, reverse=True)
        logger.info(f"Collected {len(all_messages)} recent messages from {self.name}")
        return all_messages
