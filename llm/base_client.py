"""Base LLM client interface."""

from abc import ABC, abstractmethod
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

from schemas.transcript import ContentBlock, TextBlock, ToolCallBlock, Turn


class ToolCall(BaseModel):
    """Tool call from LLM."""
    id: str
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    argument_error: Optional[str] = None


class LLMResponse(BaseModel):
    """Response from LLM: one assistant turn worth of content blocks."""
    content: List[ContentBlock] = Field(default_factory=list)
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None

    @property
    def text(self) -> str:
        return "\n".join(b.text for b in self.content if isinstance(b, TextBlock))

    @property
    def tool_calls(self) -> List[ToolCall]:
        return [
            ToolCall(id=b.id, name=b.name, arguments=b.input, argument_error=b.input_error)
            for b in self.content
            if isinstance(b, ToolCallBlock)
        ]

    def to_turn(self) -> Turn:
        return Turn(role="assistant", content=list(self.content))


class BaseLLMClient(ABC):
    """Abstract base class for LLM clients."""

    @abstractmethod
    def chat(
        self,
        turns: List[Turn],
        tools: Optional[List[Dict]] = None,
        system: Optional[str] = None,
        temperature: float = 0.1,
        max_tokens: int = 4096
    ) -> LLMResponse:
        """
        Send chat completion request.

        Args:
            turns: Full conversation so far, oldest first
            tools: Optional list of tool definitions for function calling
            system: Optional system prompt
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum tokens in response

        Returns:
            LLMResponse with text and tool call blocks in model order
        """
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        """Get the name of the LLM provider."""
        pass

    @abstractmethod
    def get_model_name(self) -> str:
        """Get the name of the model being used."""
        pass
