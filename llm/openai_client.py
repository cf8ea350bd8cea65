"""OpenAI LLM client implementation."""

import os
import json
import logging
from typing import Optional, List, Dict, Any, Tuple

from schemas.transcript import TextBlock, ToolCallBlock, ToolResultBlock, Turn
from .base_client import BaseLLMClient, LLMResponse

logger = logging.getLogger(__name__)


class OpenAIClient(BaseLLMClient):
    """OpenAI GPT client implementation."""

    DEFAULT_MODEL = "gpt-5.2"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (falls back to OPENAI_API_KEY env var)
            model: Model to use (default: gpt-5.2)
        """
        self.api_key = api_key or os.environ.get("OPENAI_API_KEY")
        self.model = model or self.DEFAULT_MODEL
        self.client = None

        if self.api_key:
            try:
                from openai import OpenAI
                self.client = OpenAI(api_key=self.api_key)
                logger.info(f"OpenAI client initialized with model: {self.model}")
            except ImportError:
                logger.error("openai package not installed. Run: pip install openai")
        else:
            logger.warning("No OpenAI API key provided")

    @staticmethod
    def convert_turns(turns: List[Turn], system: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Flatten block turns into chat-completion messages.

        Assistant tool calls ride on the assistant message; each tool result
        becomes its own "tool" message, in block order.
        """
        openai_messages = []
        if system:
            openai_messages.append({"role": "system", "content": system.strip()})

        for turn in turns:
            if turn.role == "assistant":
                openai_msg = {"role": "assistant", "content": turn.text}
                if turn.tool_calls:
                    openai_msg["tool_calls"] = [
                        {
                            "id": tc.id,
                            "type": "function",
                            "function": {
                                "name": tc.name,
                                "arguments": json.dumps(tc.input)
                            }
                        }
                        for tc in turn.tool_calls
                    ]
                openai_messages.append(openai_msg)
                continue

            for block in turn.content:
                if isinstance(block, ToolResultBlock):
                    openai_messages.append({
                        "role": "tool",
                        "tool_call_id": block.tool_use_id,
                        "content": block.content
                    })
                elif isinstance(block, TextBlock):
                    openai_messages.append({"role": "user", "content": block.text})

        return openai_messages

    @staticmethod
    def decode_arguments(raw: Optional[str]) -> Tuple[Dict[str, Any], Optional[str]]:
        """
        Decode function-call arguments.

        Returns:
            (arguments, error); on failure arguments is empty and error says why
        """
        try:
            arguments = json.loads(raw or "{}")
        except json.JSONDecodeError as e:
            logger.warning(f"Model sent unparseable tool arguments: {e}")
            return {}, f"Tool arguments are not valid JSON: {e}"
        if not isinstance(arguments, dict):
            logger.warning(f"Model sent non-object tool arguments: {raw}")
            return {}, "Tool arguments must be a JSON object"
        return arguments, None

    def chat(
        self,
        turns: List[Turn],
        tools: Optional[List[Dict]] = None,
        system: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 4096
    ) -> LLMResponse:
        """Send chat completion request to OpenAI."""
        if not self.client:
            raise RuntimeError("OpenAI client not initialized. Check API key.")

        kwargs = {
            "model": self.model,
            "messages": self.convert_turns(turns, system),
            "temperature": temperature,
            "max_completion_tokens": max_tokens,
        }

        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        try:
            response = self.client.chat.completions.create(**kwargs)

            choice = response.choices[0]
            content = []
            if choice.message.content:
                content.append(TextBlock(text=choice.message.content))

            if choice.message.tool_calls:
                for tc in choice.message.tool_calls:
                    arguments, error = self.decode_arguments(tc.function.arguments)
                    content.append(ToolCallBlock(
                        id=tc.id,
                        name=tc.function.name,
                        input=arguments,
                        input_error=error
                    ))

            usage = None
            if response.usage:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens,
                    "completion_tokens": response.usage.completion_tokens,
                    "total_tokens": response.usage.total_tokens,
                }

            return LLMResponse(
                content=content,
                usage=usage,
                finish_reason=choice.finish_reason
            )

        except Exception as e:
            logger.error(f"OpenAI API error: {e}")
            raise

    def get_provider_name(self) -> str:
        """Get the provider name."""
        return "openai"

    def get_model_name(self) -> str:
        """Get the model name."""
        return self.model
