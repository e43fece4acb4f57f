"""Stub LLM provider for testing."""

from history_talks.adapters.llm.base import LLMMessage, LLMProvider, LLMResponse
from history_talks.logging import get_logger

logger = get_logger(__name__)


class StubLLMProvider(LLMProvider):
    """Replies in character without calling an external API."""

    @property
    def name(self) -> str:
        return "stub"

    async def complete(
        self,
        messages: list[LLMMessage],
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ) -> LLMResponse:
        logger.info("stub_llm_complete", message_count=len(messages))

        user_message = next((m.content for m in reversed(messages) if m.role == "user"), "")
        system = next((m.content for m in messages if m.role == "system"), "")
        # "You are <name>, ..." -> name
        speaker = system.removeprefix("You are ").split(",", 1)[0] if system else "I"

        content = (
            f"{speaker} here. You asked: {user_message[:200]} "
            "That is a fine question. What made you curious about it?"
        )
        return LLMResponse(content=content, model="stub", finish_reason="stop")
