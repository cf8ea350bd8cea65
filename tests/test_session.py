"""Tests for the file-backed Claude session provider."""

import json
import pytest
from datetime import datetime, timedelta
from unittest.mock import patch

from connectors.session import FileSessionProvider
from errors import AuthenticationExpired


class TestFileSessionProvider:
    """Test loading, freshness, and header assembly."""

    def _write(self, path, **session):
        path.write_text(json.dumps(session))
        return FileSessionProvider(session_file=str(path))

    def test_missing_session_raises(self, tmp_path):
        provider = FileSessionProvider(session_file=str(tmp_path / "absent.json"))

        with pytest.raises(AuthenticationExpired):
            provider.get_auth_headers()
        assert provider.is_fresh() is False
        assert provider.organization_id is None

    def test_unreadable_session_raises(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{not json")
        provider = FileSessionProvider(session_file=str(path))

        with pytest.raises(AuthenticationExpired):
            provider.load_session()

    def test_headers_include_cookies(self, tmp_path):
        provider = self._write(
            tmp_path / "session.json",
            timestamp=datetime.now().isoformat(),
            cookies={"sessionKey": "abc", "lastActiveOrg": "org-1"},
            headers={"anthropic-client-platform": "web_claude_ai"},
            organizationId="org-1"
        )

        headers = provider.get_auth_headers()

        assert headers["Cookie"] == "sessionKey=abc; lastActiveOrg=org-1"
        assert headers["anthropic-client-platform"] == "web_claude_ai"
        assert "User-Agent" in headers
        assert provider.organization_id == "org-1"

    def test_freshness_window(self, tmp_path):
        old = (datetime.now() - timedelta(days=8)).isoformat()
        stale = self._write(tmp_path / "stale.json", timestamp=old, cookies={})
        fresh = self._write(tmp_path / "fresh.json", timestamp=datetime.now().isoformat(), cookies={})

        assert stale.is_fresh() is False
        assert fresh.is_fresh() is True

    def test_stale_session_still_returns_headers(self, tmp_path):
        old = (datetime.now() - timedelta(days=30)).isoformat()
        provider = self._write(tmp_path / "session.json", timestamp=old, cookies={"sessionKey": "x"})

        assert provider.get_auth_headers()["Cookie"] == "sessionKey=x"

    def test_from_env(self, tmp_path):
        env = {"CLAUDE_SESSION_COOKIE": "sessionKey=abc; other=1", "CLAUDE_ORG_ID": "org-9"}
        with patch.dict("os.environ", env):
            provider = FileSessionProvider.from_env(str(tmp_path / "session.json"))

        saved = json.loads((tmp_path / "session.json").read_text())
        assert saved["cookies"] == {"sessionKey": "abc", "other": "1"}
        assert provider.organization_id == "org-9"
        assert provider.is_fresh() is True

    def test_from_env_without_cookie(self, tmp_path):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(AuthenticationExpired):
                FileSessionProvider.from_env(str(tmp_path / "session.json"))
