"""Personal-messaging connector backed by the imessage-exporter tool."""

import logging
import re
import subprocess
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional

from errors import DataSourceUnavailable
from schemas.conversation import ConversationSummary, Message, SenderRole, TimeRange
from .base import BaseConnector, format_date

logger = logging.getLogger(__name__)

# "Mar 24, 2025 12:56:49 PM" optionally followed by "(Read by you after 2 minutes)"
TIMESTAMP_LINE = re.compile(
    r"^([A-Z][a-z]{2} \d{1,2}, \d{4}\s+\d{1,2}:\d{2}:\d{2} [AP]M)(\s*\(.*\))?$"
)
TIMESTAMP_FORMAT = "%b %d, %Y %I:%M:%S %p"
PHONE_HANDLE = re.compile(r"^\+\d+$")
EMAIL_HANDLE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
SELF_MARKER = "Me"


def _is_sender_line(line: str) -> bool:
    return line == SELF_MARKER or bool(PHONE_HANDLE.match(line)) or bool(EMAIL_HANDLE.match(line))


def _is_attachment_path(line: str) -> bool:
    return line.startswith("/Users/") or "Library/Messages/Attachments" in line


def parse_transcript(text: str, conversation_id: str) -> List[Message]:
    """
    Parse one exported transcript into Messages.

    The export only repeats the timestamp and sender lines when they change,
    so every content line is bound to the most recent header pair. Content
    before the first complete header is dropped.
    """
    messages: List[Message] = []
    current_timestamp: Optional[datetime] = None
    current_sender: Optional[str] = None

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue

        timestamp_match = TIMESTAMP_LINE.match(line)
        if timestamp_match:
            current_timestamp = datetime.strptime(timestamp_match.group(1), TIMESTAMP_FORMAT)
            continue

        if _is_sender_line(line):
            current_sender = line
            continue

        if current_timestamp is None or current_sender is None:
            continue

        if _is_attachment_path(line):
            continue

        is_self = current_sender == SELF_MARKER
        messages.append(Message(
            id=f"{conversation_id}-{len(messages)}",
            text=line,
            sender=current_sender,
            sender_role=SenderRole.SELF if is_self else SenderRole.OTHER,
            timestamp=current_timestamp
        ))

    return messages


class IMessageConnector(BaseConnector):
    """
    Reads iMessage history through the external `imessage-exporter` binary.

    Every call exports into its own temporary directory, which is removed when
    the call returns or fails.
    """

    name = "imessage"

    def __init__(
        self,
        exporter_path: str = "imessage-exporter",
        database_path: Optional[str] = None,
        timeout: int = 120
    ):
        """
        Initialize the connector.

        Args:
            exporter_path: Executable name or path of imessage-exporter
            database_path: Optional chat.db location (default: exporter's own)
            timeout: Export timeout in seconds
        """
        self.exporter_path = exporter_path
        self.database_path = database_path
        self.timeout = timeout

    def _build_command(
        self,
        export_dir: str,
        time_range: Optional[TimeRange],
        conversation_filter: Optional[str]
    ) -> List[str]:
        command = [self.exporter_path, "-f", "txt", "-o", export_dir]
        if self.database_path:
            command += ["-p", self.database_path]
        if time_range and time_range.start:
            command += ["-s", format_date(time_range.start)]
        if time_range and time_range.end:
            # The exporter's end date is exclusive
            command += ["-e", format_date(time_range.end + timedelta(days=1))]
        if conversation_filter:
            command += ["-t", conversation_filter]
        return command

    def _run_exporter(
        self,
        export_dir: str,
        time_range: Optional[TimeRange] = None,
        conversation_filter: Optional[str] = None
    ) -> None:
        command = self._build_command(export_dir, time_range, conversation_filter)
        logger.info(f"Running exporter: {' '.join(command)}")

        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=self.timeout
            )
        except FileNotFoundError as e:
            raise DataSourceUnavailable(
                f"{self.exporter_path} not found. Install imessage-exporter.",
                source=self.name
            ) from e
        except PermissionError as e:
            raise DataSourceUnavailable(
                f"Permission denied running {self.exporter_path}: {e}",
                source=self.name
            ) from e
        except subprocess.TimeoutExpired as e:
            raise DataSourceUnavailable(
                f"Export timed out after {self.timeout}s",
                source=self.name
            ) from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise DataSourceUnavailable(
                f"Export failed with exit code {result.returncode}: {stderr}",
                source=self.name
            )
        if result.stderr and "Warning" not in result.stderr:
            logger.warning(f"imessage-exporter stderr: {result.stderr.strip()}")

    def _read_export(self, export_dir: str) -> List[dict]:
        """Parse every exported transcript in the directory."""
        conversations = []
        try:
            files = sorted(Path(export_dir).glob("*.txt"))
            for path in files:
                conversation_id = path.stem
                messages = parse_transcript(path.read_text(encoding="utf-8"), conversation_id)
                if not messages:
                    continue
                conversations.append({
                    "id": conversation_id,
                    "participants": [p.strip() for p in conversation_id.split(",") if p.strip()],
                    "messages": messages,
                })
        except (OSError, UnicodeDecodeError) as e:
            raise DataSourceUnavailable(f"Could not read export: {e}", source=self.name) from e
        return conversations

    def _export(
        self,
        time_range: Optional[TimeRange] = None,
        conversation_filter: Optional[str] = None
    ) -> List[dict]:
        try:
            with tempfile.TemporaryDirectory(prefix="imessage-export-") as export_dir:
                self._run_exporter(export_dir, time_range, conversation_filter)
                return self._read_export(export_dir)
        except OSError as e:
            raise DataSourceUnavailable(
                f"Could not prepare export directory: {e}",
                source=self.name
            ) from e

    def list_conversations(self, time_range: TimeRange) -> List[ConversationSummary]:
        if time_range.is_empty:
            return []

        summaries = []
        for conv in self._export(time_range):
            messages = [m for m in conv["messages"] if time_range.contains(m.timestamp)]
            if not messages:
                continue
            last_activity = max(m.timestamp for m in messages)
            summaries.append(ConversationSummary(
                id=conv["id"],
                name=conv["id"],
                participants=conv["participants"],
                last_activity=last_activity,
                message_count=len(messages)
            ))

        logger.info(f"Found {len(summaries)} iMessage conversations in {time_range.describe()}")
        return summaries

    def list_messages(
        self,
        conversation_id: str,
        time_range: Optional[TimeRange] = None
    ) -> List[Message]:
        if time_range is not None and time_range.is_empty:
            return []

        participants = [p.strip() for p in conversation_id.split(",") if p.strip()]
        conversation_filter = participants[0] if participants else None

        for conv in self._export(time_range, conversation_filter):
            if conv["id"] != conversation_id:
                continue
            messages = conv["messages"]
            if time_range is not None:
                messages = [m for m in messages if time_range.contains(m.timestamp)]
            return sorted(messages, key=lambda m: m.timestamp)

        logger.info(f"No iMessage conversation named {conversation_id!r}")
        return []
