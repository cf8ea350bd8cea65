"""Normalized conversation and message schemas shared by all connectors."""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field


class SenderRole(str, Enum):
    """Who sent a message.

    Personal messaging uses self/other, AI dialogues use human/assistant.
    """
    SELF = "self"
    OTHER = "other"
    HUMAN = "human"
    ASSISTANT = "assistant"


class ConversationSummary(BaseModel):
    """Conversation metadata returned by a connector listing."""
    id: str
    name: Optional[str] = None
    participants: List[str] = Field(default_factory=list)
    last_activity: datetime
    message_count: int = 0


class Message(BaseModel):
    """A single message in a conversation."""
    id: str
    text: str
    sender: str
    sender_role: SenderRole
    timestamp: datetime
    parent_id: Optional[str] = None

    @property
    def is_from_me(self) -> bool:
        return self.sender_role in (SenderRole.SELF, SenderRole.HUMAN)


class TimeRange(BaseModel):
    """Inclusive time window. Either bound may be open."""
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @classmethod
    def from_iso_dates(
        cls,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ) -> "TimeRange":
        """
        Build a range from ISO calendar dates (YYYY-MM-DD).

        The end date covers its whole day.

        Raises:
            ValueError: If a date does not parse
        """
        start = None
        end = None
        if start_date:
            start = datetime.combine(date.fromisoformat(start_date), time.min)
        if end_date:
            end = datetime.combine(date.fromisoformat(end_date), time.max)
        return cls(start=start, end=end)

    @property
    def is_empty(self) -> bool:
        return self.start is not None and self.end is not None and self.start > self.end

    def contains(self, moment: datetime) -> bool:
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    def describe(self) -> str:
        start = self.start.date().isoformat() if self.start else "beginning"
        end = self.end.date().isoformat() if self.end else "now"
        return f"{start} to {end}"
