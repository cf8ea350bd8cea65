"""Session providers supplying authentication headers for Claude.ai."""

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Optional

from errors import AuthenticationExpired
from .base import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_SESSION_FILE = Path.home() / ".claude-session.json"
DEFAULT_MAX_AGE = timedelta(days=7)
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/140.0.0.0 Safari/537.36"
    ),
    "Referer": "https://claude.ai/",
    "Origin": "https://claude.ai",
}


class SessionProvider(ABC):
    """Supplies credential headers; the connector never stores them."""

    @abstractmethod
    def get_auth_headers(self) -> Dict[str, str]:
        """
        Headers for an authenticated request.

        Raises:
            AuthenticationExpired: If no usable session exists
        """
        pass

    @abstractmethod
    def is_fresh(self) -> bool:
        """Whether the session is recent enough to be trusted."""
        pass

    @property
    def organization_id(self) -> Optional[str]:
        return None


class FileSessionProvider(SessionProvider):
    """Reads a session captured by the browser extraction scripts."""

    def __init__(
        self,
        session_file: Optional[str] = None,
        max_age: timedelta = DEFAULT_MAX_AGE
    ):
        self.session_file = Path(session_file) if session_file else DEFAULT_SESSION_FILE
        self.max_age = max_age

    def load_session(self) -> dict:
        """Load the saved session JSON."""
        if not self.session_file.exists():
            raise AuthenticationExpired(
                f"No saved session found at {self.session_file}. Run session extraction first.",
                source="claude_ai"
            )
        try:
            with open(self.session_file, "r", encoding="utf-8") as f:
                session = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AuthenticationExpired(
                f"Session file {self.session_file} is unreadable: {e}",
                source="claude_ai"
            ) from e

        if not isinstance(session, dict):
            raise AuthenticationExpired(
                f"Session file {self.session_file} has unexpected format",
                source="claude_ai"
            )
        return session

    def save_session(self, session_data: dict) -> None:
        session = {
            "timestamp": datetime.now().isoformat(),
            "cookies": {},
            "headers": {},
            **session_data,
        }
        self.session_file.parent.mkdir(parents=True, exist_ok=True)
        with open(self.session_file, "w", encoding="utf-8") as f:
            json.dump(session, f, indent=2)
        logger.info(f"Claude session saved to: {self.session_file}")

    @classmethod
    def from_env(cls, session_file: Optional[str] = None) -> "FileSessionProvider":
        """Build and save a session from CLAUDE_SESSION_COOKIE / CLAUDE_ORG_ID."""
        cookie_header = os.environ.get("CLAUDE_SESSION_COOKIE")
        if not cookie_header:
            raise AuthenticationExpired(
                "CLAUDE_SESSION_COOKIE environment variable not set",
                source="claude_ai"
            )

        cookies = {}
        for cookie in cookie_header.split(";"):
            name, _, value = cookie.strip().partition("=")
            if name and value:
                cookies[name] = value

        provider = cls(session_file=session_file)
        provider.save_session({
            "cookies": cookies,
            "organizationId": os.environ.get("CLAUDE_ORG_ID"),
            "source": "environment",
        })
        return provider

    def is_fresh(self) -> bool:
        try:
            session = self.load_session()
            saved_at = parse_timestamp(session["timestamp"])
        except (AuthenticationExpired, KeyError, ValueError):
            return False
        return datetime.now() - saved_at <= self.max_age

    @property
    def organization_id(self) -> Optional[str]:
        try:
            return self.load_session().get("organizationId")
        except AuthenticationExpired:
            return None

    def get_auth_headers(self) -> Dict[str, str]:
        session = self.load_session()
        if not self.is_fresh():
            logger.warning("Claude session may be expired. Re-extract it if API calls fail.")

        cookies = session.get("cookies") or {}
        headers = dict(BROWSER_HEADERS)
        headers["Cookie"] = "; ".join(f"{name}={value}" for name, value in cookies.items())
        headers.update(session.get("headers") or {})
        return headers
