"""Tests for planning artifact persistence."""

import json
import os
import pytest
from datetime import datetime
from unittest.mock import patch

from errors import PersistedArtifactMissing, PersistenceFailed
from memory.plan_store import PlanStore
from schemas.transcript import Transcript, Turn


def _transcript(text="Plan the letter"):
    transcript = Transcript()
    transcript.append(Turn.user_text(text))
    return transcript


class TestPlanStore:
    """Test saving and loading the latest plan."""

    def _save(self, store, prompt="Enhanced prompt", when=datetime(2025, 3, 24, 9, 30)):
        return store.save(
            narrative_text="Full analysis",
            enhanced_prompt=prompt,
            transcript=_transcript(),
            lookback_days=7,
            window_start=datetime(2025, 3, 17),
            window_end=when,
            iterations=3,
            model="claude-sonnet-4-20250514",
            generated_at=when
        )

    def test_load_before_any_run(self, tmp_path):
        store = PlanStore(str(tmp_path / "out"))

        with pytest.raises(PersistedArtifactMissing):
            store.load_latest()

    def test_save_writes_all_artifacts(self, tmp_path):
        store = PlanStore(str(tmp_path))

        result = self._save(store)

        assert (tmp_path / "enhanced-user-prompt.md").read_text() == "Enhanced prompt"
        assert open(result.full_result_path).read() == "Full analysis"
        assert os.path.basename(result.full_result_path).startswith("planning-result-2025-03-24T09-30-00")
        assert os.path.basename(result.transcript_path).startswith("conversation-history-")
        history = json.loads(open(result.transcript_path).read())
        assert history[0]["content"][0]["text"] == "Plan the letter"

    def test_metadata_uses_camel_case_keys(self, tmp_path):
        store = PlanStore(str(tmp_path))
        self._save(store)

        data = json.loads((tmp_path / "latest-plan-metadata.json").read_text())

        assert data["daysLookedBack"] == 7
        assert data["promptPath"].endswith("enhanced-user-prompt.md")
        assert data["date"] == "Monday, March 24, 2025 at 9:30 AM"
        assert data["iterations"] == 3

    def test_load_latest(self, tmp_path):
        store = PlanStore(str(tmp_path))
        self._save(store, prompt="first", when=datetime(2025, 3, 24, 9, 0))
        self._save(store, prompt="second", when=datetime(2025, 3, 25, 9, 0))

        latest = store.load_latest()

        assert latest.enhanced_prompt == "second"
        assert latest.metadata.days_looked_back == 7
        assert latest.metadata.model == "claude-sonnet-4-20250514"
        assert len(list(tmp_path.glob("planning-result-*.md"))) == 2

    def test_missing_referenced_file(self, tmp_path):
        store = PlanStore(str(tmp_path))
        result = self._save(store)
        os.remove(result.full_result_path)

        with pytest.raises(PersistedArtifactMissing) as exc_info:
            store.load_latest()

        assert "Full planning result" in exc_info.value.message

    def test_corrupt_metadata(self, tmp_path):
        store = PlanStore(str(tmp_path))
        (tmp_path / "latest-plan-metadata.json").write_text("{broken")

        with pytest.raises(PersistedArtifactMissing):
            store.load_latest()

    def test_failed_save_leaves_latest_untouched(self, tmp_path):
        store = PlanStore(str(tmp_path))
        self._save(store, prompt="good run", when=datetime(2025, 3, 24, 9, 0))

        with patch("memory.plan_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(PersistenceFailed):
                self._save(store, prompt="broken run", when=datetime(2025, 3, 25, 9, 0))

        assert store.load_latest().enhanced_prompt == "good run"
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_metadata_promotion_failure_restores_prompt(self, tmp_path):
        store = PlanStore(str(tmp_path))
        self._save(store, prompt="OLD PROMPT", when=datetime(2025, 3, 24, 9, 0))
        metadata_before = (tmp_path / "latest-plan-metadata.json").read_text()
        real_replace = os.replace
        calls = []

        def fail_second(src, dst):
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_replace(src, dst)

        with patch("memory.plan_store.os.replace", side_effect=fail_second):
            with pytest.raises(PersistenceFailed):
                self._save(store, prompt="NEW PROMPT", when=datetime(2025, 3, 25, 9, 0))

        assert (tmp_path / "enhanced-user-prompt.md").read_text() == "OLD PROMPT"
        assert (tmp_path / "latest-plan-metadata.json").read_text() == metadata_before
        assert store.load_latest().enhanced_prompt == "OLD PROMPT"
        assert list(tmp_path.glob(".*.tmp")) == []

    def test_first_run_metadata_failure_leaves_no_latest(self, tmp_path):
        store = PlanStore(str(tmp_path))
        real_replace = os.replace
        calls = []

        def fail_second(src, dst):
            calls.append(dst)
            if len(calls) == 2:
                raise OSError("disk full")
            return real_replace(src, dst)

        with patch("memory.plan_store.os.replace", side_effect=fail_second):
            with pytest.raises(PersistenceFailed):
                self._save(store, prompt="NEW PROMPT")

        assert not (tmp_path / "enhanced-user-prompt.md").exists()
        with pytest.raises(PersistedArtifactMissing):
            store.load_latest()

    def test_debug_transcript_does_not_touch_latest(self, tmp_path):
        store = PlanStore(str(tmp_path))

        path = store.save_debug_transcript(_transcript("unfinished"), label="exceeded")

        assert path.name.startswith("conversation-history-exceeded-")
        assert json.loads(path.read_text())[0]["content"][0]["text"] == "unfinished"
        with pytest.raises(PersistedArtifactMissing):
            store.load_latest()
