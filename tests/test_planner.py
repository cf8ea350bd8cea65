"""End-to-end tests for the planning phase with fake model and sources."""

import json
import pytest
from datetime import datetime, timedelta

from config.settings import Settings
from connectors.base import BaseConnector
from errors import DataSourceUnavailable, IterationBudgetExceeded, PersistedArtifactMissing
from llm.base_client import BaseLLMClient, LLMResponse
from main import main
from planner import Planner
from prompts.templates import PromptTemplates
from schemas.conversation import ConversationSummary, Message, SenderRole
from schemas.transcript import TextBlock, ToolCallBlock


class ScriptedLLMClient(BaseLLMClient):
    """Replays queued responses; repeats the last one when the queue runs dry."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.received = []

    def chat(self, turns, tools=None, system=None, temperature=0.1, max_tokens=4096):
        self.received.append(list(turns))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]

    def get_provider_name(self):
        return "scripted"

    def get_model_name(self):
        return "scripted-model"


class RecentMessagesConnector(BaseConnector):
    """One conversation active yesterday."""

    name = "imessage"

    def __init__(self):
        self.yesterday = datetime.now() - timedelta(days=1)

    def list_conversations(self, time_range):
        return [ConversationSummary(
            id="+15551234567",
            participants=["+15551234567"],
            last_activity=self.yesterday,
            message_count=1
        )]

    def list_messages(self, conversation_id, time_range=None):
        return [Message(
            id="m1",
            text="Rough week at work",
            sender=conversation_id,
            sender_role=SenderRole.OTHER,
            timestamp=self.yesterday
        )]


class DownConnector(BaseConnector):
    name = "claude_ai"

    def list_conversations(self, time_range):
        raise DataSourceUnavailable("Claude AI API unreachable")

    def list_messages(self, conversation_id, time_range=None):
        raise DataSourceUnavailable("Claude AI API unreachable")


def _settings(tmp_path, **overrides):
    values = dict(output_dir=str(tmp_path), days_to_look_back=3, max_iterations=4)
    values.update(overrides)
    return Settings(**values)


FINAL_ANSWER = (
    "The subject mentioned a rough week.\n"
    '<prompt scope="user" for="Your Printer" updated>\nWrite about resilience.\n</prompt>'
)


class TestPlanner:
    """Test a full planning run."""

    def setup_method(self):
        """Set up test fixtures."""
        self.connectors = [RecentMessagesConnector(), DownConnector()]

    def test_generate_plan(self, tmp_path):
        client = ScriptedLLMClient([
            LLMResponse(content=[
                ToolCallBlock(id="t1", name="imessage_get_conversations", input={
                    "start_date": (datetime.now() - timedelta(days=3)).date().isoformat(),
                    "end_date": datetime.now().date().isoformat(),
                }),
                ToolCallBlock(id="t2", name="claude_ai_get_conversations", input={
                    "start_date": "2025-03-20", "end_date": "2025-03-27",
                }),
            ]),
            LLMResponse(content=[TextBlock(text=FINAL_ANSWER)]),
        ])
        planner = Planner(
            settings=_settings(tmp_path),
            llm_client=client,
            connectors=self.connectors,
            templates=PromptTemplates()
        )

        result = planner.generate_plan()

        assert result.enhanced_prompt == "Write about resilience."
        assert result.lookback_days == 3
        assert result.metadata.iterations == 2
        assert result.metadata.model == "scripted-model"

        tool_turn = client.received[1][2]
        kinds = [json.loads(block.content) for block in tool_turn.tool_results]
        assert kinds[0]["ok"] is True
        assert kinds[1]["error"]["kind"] == "data_source_unavailable"

        latest = Planner.load_latest_plan(str(tmp_path))
        assert latest.enhanced_prompt == "Write about resilience."
        assert latest.metadata.days_looked_back == 3

    def test_opening_prompt_lists_tools_and_window(self, tmp_path):
        planner = Planner(
            settings=_settings(tmp_path),
            llm_client=ScriptedLLMClient([]),
            connectors=self.connectors
        )
        now = datetime(2025, 3, 24, 9, 0)

        prompt = planner.build_opening_prompt(now, now - timedelta(days=3))

        assert "Monday, March 24, 2025 at 9:00 AM" in prompt
        assert "imessage_get_conversation_messages" in prompt
        assert "claude_ai_get_conversations" in prompt
        assert "2025-03-21" in prompt
        assert "%%TOOL_CATALOGUE%%" not in prompt
        assert "%%DAYS_BACK%%" not in prompt

    def test_fallback_prompt_without_block(self, tmp_path):
        client = ScriptedLLMClient([LLMResponse(content=[TextBlock(text="Just a summary")])])
        templates = PromptTemplates(user="Info:\n%%COLLECTED_INFO%%")
        planner = Planner(
            settings=_settings(tmp_path),
            llm_client=client,
            connectors=self.connectors,
            templates=templates
        )

        result = planner.generate_plan()

        assert result.enhanced_prompt == "Info:\nJust a summary"

    def test_budget_exceeded_keeps_debug_transcript(self, tmp_path):
        looping = LLMResponse(content=[
            ToolCallBlock(id="t", name="imessage_get_conversations", input={
                "start_date": "2025-03-20", "end_date": "2025-03-27",
            })
        ])
        client = ScriptedLLMClient([looping])
        planner = Planner(
            settings=_settings(tmp_path, max_iterations=2),
            llm_client=client,
            connectors=self.connectors
        )

        with pytest.raises(IterationBudgetExceeded):
            planner.generate_plan()

        assert len(client.received) == 2
        assert len(list(tmp_path.glob("conversation-history-exceeded-*.json"))) == 1
        with pytest.raises(PersistedArtifactMissing):
            Planner.load_latest_plan(str(tmp_path))

    def test_show_latest_without_run(self, tmp_path, capsys):
        exit_code = main(["--show-latest", "--output-dir", str(tmp_path)])

        assert exit_code == 1
        assert "persisted_artifact_missing" in capsys.readouterr().err


class TestSettings:
    """Test configuration defaults and overrides."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PLANNER_DAYS_BACK", raising=False)

        settings = Settings(days_to_look_back=None)

        assert settings.days_to_look_back == 7
        assert settings.max_iterations == 10

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("PLANNER_DAYS_BACK", "14")
        monkeypatch.setenv("PLANNER_MAX_MESSAGES", "25")

        settings = Settings()

        assert settings.days_to_look_back == 14
        assert settings.max_messages_per_call == 25

    def test_explicit_value_wins(self, monkeypatch):
        monkeypatch.setenv("PLANNER_DAYS_BACK", "14")

        assert Settings(days_to_look_back=2).days_to_look_back == 2

    def test_provider_api_key(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

        settings = Settings(llm_provider="openai")

        assert settings.get_llm_api_key() == "sk-test"
