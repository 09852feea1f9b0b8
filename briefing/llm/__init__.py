"""LLM completion clients and prompt templates."""

from briefing.llm.client import GeminiClient, LLMClient, OpenAIClient, create_llm_client
from briefing.llm.config import LLMConfig

__all__ = [
    "GeminiClient",
    "LLMClient",
    "LLMConfig",
    "OpenAIClient",
    "create_llm_client",
]
