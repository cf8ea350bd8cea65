"""AI-dialogue connector for Claude.ai conversations."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from errors import AuthenticationExpired, DataSourceUnavailable
from schemas.conversation import ConversationSummary, Message, TimeRange
from .base import BaseConnector, parse_timestamp
from .session import FileSessionProvider, SessionProvider
from .tree import construct_tree, format_messages

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_PATH = Path.home() / ".claude" / "conversations.json"


def example_conversations() -> List[Dict[str, Any]]:
    """Built-in example conversation used as the last fallback."""
    now = datetime.now().isoformat()
    return [
        {
            "uuid": "example-conv-1",
            "name": "Example Conversation",
            "created_at": now,
            "updated_at": now,
            "chat_messages": [
                {
                    "uuid": "example-msg-1",
                    "text": "Hello Claude",
                    "sender": "human",
                    "created_at": now,
                    "updated_at": now,
                    "parent_message_uuid": None,
                },
                {
                    "uuid": "example-msg-2",
                    "text": "Hello! How can I help you today?",
                    "sender": "assistant",
                    "created_at": now,
                    "updated_at": now,
                    "parent_message_uuid": "example-msg-1",
                },
            ],
            "current_leaf_message_uuid": "example-msg-2",
        }
    ]


def unwrap_conversations(data: Any, origin: str) -> List[Dict[str, Any]]:
    """Accept a bare list or a {"conversations"|"data": [...]} wrapper."""
    if isinstance(data, dict):
        if "conversations" not in data and "data" not in data:
            logger.warning(f"No conversation list in object from {origin}: keys {sorted(data)}")
            return []
        data = data.get("conversations", data.get("data"))
    if data is None:
        return []
    if not isinstance(data, list):
        logger.warning(f"Unexpected conversation list format from {origin}: {type(data).__name__}")
        return []
    return data


class ClaudeAIConnector(BaseConnector):
    """
    Reads conversations from the Claude.ai web API.

    Authentication errors are reported as AuthenticationExpired. Other fetch
    failures fall back to a local snapshot export and then, when enabled, to a
    built-in example conversation.
    """

    name = "claude_ai"

    def __init__(
        self,
        session_provider: Optional[SessionProvider] = None,
        organization_id: Optional[str] = None,
        base_url: str = "https://claude.ai/api",
        snapshot_path: Optional[str] = None,
        timeout: int = 30,
        use_authentication: bool = True,
        use_example_fallback: bool = False
    ):
        """
        Initialize Claude.ai connector.

        Args:
            session_provider: Source of auth headers (default: FileSessionProvider)
            organization_id: Organization id (default: taken from the session)
            base_url: API base URL
            snapshot_path: Local conversations.json export used as fallback
            timeout: Request timeout in seconds
            use_authentication: Call the API at all
            use_example_fallback: Serve the built-in example when nothing else works
        """
        self.session_provider = session_provider or FileSessionProvider()
        self.organization_id = organization_id
        self.base_url = base_url.rstrip("/")
        self.snapshot_path = Path(snapshot_path) if snapshot_path else DEFAULT_SNAPSHOT_PATH
        self.timeout = timeout
        self.use_authentication = use_authentication
        self.use_example_fallback = use_example_fallback
        self._last_error: Optional[str] = None

    def _get_org_id(self) -> str:
        org_id = self.organization_id or self.session_provider.organization_id
        if not org_id:
            raise AuthenticationExpired(
                "No organization ID available. Set CLAUDE_ORG_ID or extract a session with an org ID.",
                source=self.name
            )
        return org_id

    def _get_headers(self) -> Dict[str, str]:
        headers = self.session_provider.get_auth_headers()
        headers["Content-Type"] = "application/json"
        headers["Accept"] = "application/json"
        return headers

    def _fetch_from_api(self, endpoint: str, params: Optional[dict] = None) -> Any:
        """
        GET an organization endpoint.

        Returns:
            Decoded JSON, or None for 404

        Raises:
            AuthenticationExpired: On 401/403 or a missing session
            DataSourceUnavailable: On any other failure
        """
        url = f"{self.base_url}/organizations/{self._get_org_id()}{endpoint}"
        headers = self._get_headers()

        try:
            response = requests.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise DataSourceUnavailable(
                f"Request timeout after {self.timeout}s", source=self.name
            ) from e
        except requests.exceptions.RequestException as e:
            raise DataSourceUnavailable(f"Claude AI API unreachable: {e}", source=self.name) from e

        if response.status_code in (401, 403):
            raise AuthenticationExpired(
                f"Authentication failed: {response.status_code}. Session may be expired; re-extract it.",
                source=self.name
            )
        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise DataSourceUnavailable(
                f"Claude AI API error: {response.status_code}", source=self.name
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataSourceUnavailable(
                f"Claude AI API returned invalid JSON: {e}", source=self.name
            ) from e

    def _load_fallback(self, error: Optional[DataSourceUnavailable]) -> List[Dict[str, Any]]:
        """Snapshot, then example, else re-raise the original failure."""
        if error is not None:
            self._last_error = error.message
            logger.warning(f"Claude AI fetch failed, trying fallbacks: {error.message}")

        if self.snapshot_path.exists():
            try:
                with open(self.snapshot_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                logger.info(f"Reading conversations from snapshot {self.snapshot_path}")
                return unwrap_conversations(data, str(self.snapshot_path))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Snapshot {self.snapshot_path} unreadable: {e}")

        if self.use_example_fallback:
            logger.info("Using built-in example conversation")
            return example_conversations()

        raise error or DataSourceUnavailable(
            "Claude AI API disabled and no local snapshot available", source=self.name
        )

    def _fetch_conversations(self) -> List[Dict[str, Any]]:
        if not self.use_authentication:
            return self._load_fallback(None)
        try:
            data = self._fetch_from_api("/chat_conversations")
        except DataSourceUnavailable as e:
            return self._load_fallback(e)
        return unwrap_conversations(data, "Claude AI API")

    def _fetch_conversation(self, conversation_id: str) -> Optional[Dict[str, Any]]:
        if self.use_authentication:
            try:
                return self._fetch_from_api(
                    f"/chat_conversations/{conversation_id}",
                    {"tree": "True", "rendering_mode": "messages"}
                )
            except DataSourceUnavailable as e:
                conversations = self._load_fallback(e)
        else:
            conversations = self._load_fallback(None)

        for conv in conversations:
            if conv.get("uuid") == conversation_id:
                return conv
        return None

    def list_conversations(self, time_range: TimeRange) -> List[ConversationSummary]:
        if time_range.is_empty:
            return []

        summaries = []
        for conv in self._fetch_conversations():
            try:
                updated_at = parse_timestamp(conv["updated_at"])
            except (KeyError, ValueError):
                logger.warning(f"Skipping conversation without a usable updated_at: {conv.get('uuid')}")
                continue
            if not time_range.contains(updated_at):
                continue
            summaries.append(ConversationSummary(
                id=conv["uuid"],
                name=conv.get("name") or "Untitled",
                participants=["human", "assistant"],
                last_activity=updated_at,
                message_count=len(conv.get("chat_messages") or [])
            ))

        logger.info(f"Found {len(summaries)} Claude AI conversations in {time_range.describe()}")
        return summaries

    def list_messages(
        self,
        conversation_id: str,
        time_range: Optional[TimeRange] = None
    ) -> List[Message]:
        if time_range is not None and time_range.is_empty:
            return []

        data = self._fetch_conversation(conversation_id)
        if not data or not data.get("chat_messages"):
            return []

        path = construct_tree(data["chat_messages"], data.get("current_leaf_message_uuid"))
        if not path:
            logger.info(f"No visible messages in conversation {conversation_id}")
            return []

        messages = format_messages(path)
        if time_range is not None:
            messages = [m for m in messages if time_range.contains(m.timestamp)]
        return messages

    def export_conversations(self, output_path: Optional[str] = None) -> str:
        """Save the fetched conversation list as a snapshot for later fallback."""
        conversations = self._fetch_conversations()
        target = Path(output_path) if output_path else self.snapshot_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(conversations, f, indent=2)
        return f"Exported {len(conversations)} conversations to {target}"

    def get_last_error(self) -> Optional[str]:
        """Get the last fetch error that triggered a fallback."""
        return self._last_error
