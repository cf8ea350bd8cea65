"""LLM client abstraction layer."""

from .base_client import BaseLLMClient, LLMResponse, ToolCall
from .factory import create_llm_client, LLMProvider

__all__ = [
    "BaseLLMClient",
    "LLMResponse",
    "ToolCall",
    "create_llm_client",
    "LLMProvider",
]
