"""Chat completion adapters."""

from history_talks.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from history_talks.adapters.llm.openai import OpenAIProvider
from history_talks.adapters.llm.stub import StubLLMProvider
from history_talks.config import settings


def get_llm_provider() -> LLMProvider:
    """LLM provider selected by settings.llm_provider."""
    if settings.llm_provider == "openai":
        return OpenAIProvider()
    return StubLLMProvider()


__all__ = [
    "LLMMessage",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "StubLLMProvider",
    "get_llm_provider",
]
