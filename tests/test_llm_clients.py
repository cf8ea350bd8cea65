"""Tests for provider message conversion."""

import json
import pytest
from unittest.mock import Mock, patch

from llm.anthropic_client import AnthropicClient
from llm.factory import LLMProvider, create_llm_client
from llm.openai_client import OpenAIClient
from schemas.transcript import TextBlock, ToolCallBlock, ToolResultBlock, Turn


TOOLS = [{
    "type": "function",
    "function": {
        "name": "imessage_get_conversations",
        "description": "List conversations",
        "parameters": {"type": "object", "properties": {}, "required": []}
    }
}]


def _turns():
    return [
        Turn.user_text("Plan the letter"),
        Turn(role="assistant", content=[
            TextBlock(text="Checking messages"),
            ToolCallBlock(id="t1", name="imessage_get_conversations", input={"start_date": "2025-03-20"}),
        ]),
        Turn(role="user", content=[
            ToolResultBlock(tool_use_id="t1", content='{"ok": true}'),
        ]),
    ]


class TestAnthropicClient:
    """Test Anthropic request and response mapping."""

    def setup_method(self):
        """Set up test fixtures."""
        with patch.dict("os.environ", {}, clear=True):
            self.client = AnthropicClient(api_key=None)
        self.client.client = Mock()

    def test_convert_tools(self):
        converted = AnthropicClient.convert_tools(TOOLS)

        assert converted == [{
            "name": "imessage_get_conversations",
            "description": "List conversations",
            "input_schema": {"type": "object", "properties": {}, "required": []}
        }]

    def test_convert_turns_keeps_blocks(self):
        messages = AnthropicClient.convert_turns(_turns())

        assert [m["role"] for m in messages] == ["user", "assistant", "user"]
        assert messages[1]["content"][1] == {
            "type": "tool_use",
            "id": "t1",
            "name": "imessage_get_conversations",
            "input": {"start_date": "2025-03-20"}
        }
        assert messages[2]["content"][0]["tool_use_id"] == "t1"

    def test_chat_parses_blocks(self):
        self.client.client.messages.create.return_value = Mock(
            content=[
                Mock(type="text", text="Let me look"),
                Mock(type="tool_use", id="t2", input={"conversation_id": "c1"}),
            ],
            usage=Mock(input_tokens=10, output_tokens=5),
            stop_reason="tool_use"
        )
        self.client.client.messages.create.return_value.content[1].name = "imessage_get_conversation_messages"

        response = self.client.chat(_turns(), tools=TOOLS, system="  System  ")

        kwargs = self.client.client.messages.create.call_args[1]
        assert kwargs["system"] == "System"
        assert kwargs["tools"][0]["name"] == "imessage_get_conversations"
        assert response.text == "Let me look"
        assert response.tool_calls[0].arguments == {"conversation_id": "c1"}
        assert response.usage["total_tokens"] == 15
        assert response.finish_reason == "tool_use"

    def test_chat_without_client(self):
        with patch.dict("os.environ", {}, clear=True):
            client = AnthropicClient(api_key=None)

        with pytest.raises(RuntimeError):
            client.chat([Turn.user_text("hi")])


class TestOpenAIClient:
    """Test OpenAI request and response mapping."""

    def setup_method(self):
        """Set up test fixtures."""
        with patch.dict("os.environ", {}, clear=True):
            self.client = OpenAIClient(api_key=None)
        self.client.client = Mock()

    def test_convert_turns(self):
        messages = OpenAIClient.convert_turns(_turns(), system="System")

        assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool"]
        tool_call = messages[2]["tool_calls"][0]
        assert tool_call["id"] == "t1"
        assert json.loads(tool_call["function"]["arguments"]) == {"start_date": "2025-03-20"}
        assert messages[3] == {"role": "tool", "tool_call_id": "t1", "content": '{"ok": true}'}

    def test_chat_parses_tool_calls(self):
        tool_call = Mock(id="call_1")
        tool_call.function.name = "imessage_get_conversations"
        tool_call.function.arguments = '{"start_date": "2025-03-20", "end_date": "2025-03-27"}'
        choice = Mock(finish_reason="tool_calls")
        choice.message.content = None
        choice.message.tool_calls = [tool_call]
        self.client.client.chat.completions.create.return_value = Mock(
            choices=[choice],
            usage=Mock(prompt_tokens=3, completion_tokens=4, total_tokens=7)
        )

        response = self.client.chat(_turns(), tools=TOOLS)

        kwargs = self.client.client.chat.completions.create.call_args[1]
        assert kwargs["tool_choice"] == "auto"
        assert response.text == ""
        assert response.tool_calls[0].name == "imessage_get_conversations"
        assert response.tool_calls[0].arguments["end_date"] == "2025-03-27"
        assert response.tool_calls[0].argument_error is None

    def test_chat_keeps_call_with_unparseable_arguments(self):
        tool_call = Mock(id="call_1")
        tool_call.function.name = "imessage_get_conversations"
        tool_call.function.arguments = '{"start_date": "2025-03-20", '
        choice = Mock(finish_reason="tool_calls")
        choice.message.content = None
        choice.message.tool_calls = [tool_call]
        self.client.client.chat.completions.create.return_value = Mock(choices=[choice], usage=None)

        response = self.client.chat(_turns(), tools=TOOLS)

        call = response.tool_calls[0]
        assert call.id == "call_1"
        assert call.arguments == {}
        assert "not valid JSON" in call.argument_error

    def test_decode_arguments(self):
        assert OpenAIClient.decode_arguments(None) == ({}, None)
        assert OpenAIClient.decode_arguments('{"a": 1}') == ({"a": 1}, None)
        arguments, error = OpenAIClient.decode_arguments('["2025-03-20"]')
        assert arguments == {}
        assert error == "Tool arguments must be a JSON object"

    def test_argument_error_not_sent_to_anthropic(self):
        turn = Turn(role="assistant", content=[
            ToolCallBlock(id="t1", name="x", input={}, input_error="bad json"),
        ])

        messages = AnthropicClient.convert_turns([turn])

        assert "input_error" not in messages[0]["content"][0]


class TestFactory:
    """Test provider selection."""

    def test_create_by_name(self):
        with patch.dict("os.environ", {}, clear=True):
            assert isinstance(create_llm_client("openai"), OpenAIClient)
            assert isinstance(create_llm_client(LLMProvider.ANTHROPIC), AnthropicClient)

    def test_model_override(self):
        with patch.dict("os.environ", {}, clear=True):
            client = create_llm_client("anthropic", model="claude-opus-4-20250514")

        assert client.get_model_name() == "claude-opus-4-20250514"
        assert client.get_provider_name() == "anthropic"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_llm_client("gemini")
