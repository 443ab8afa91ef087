"""Async chat clients for the tier-1 intent classifier."""

from .base_client import BaseLLMClient, Message, LLMResponse
from .anthropic_client import AnthropicClient
from .gemini_client import GeminiClient
from .openai_client import OpenAIClient
from .factory import create_llm_client, LLMProvider

__all__ = [
    "BaseLLMClient",
    "Message",
    "LLMResponse",
    "AnthropicClient",
    "GeminiClient",
    "OpenAIClient",
    "create_llm_client",
    "LLMProvider",
]
