"""Tests for the persona chat service."""

from unittest.mock import AsyncMock, PropertyMock, patch

import httpx
import pytest

from history_talks.adapters.llm.base import LLMResponse
from history_talks.adapters.voiceover.base import VoiceoverResult
from history_talks.adapters.voiceover.stub import StubVoiceoverProvider
from history_talks.config import settings
from history_talks.errors import (
    ChatCompletionError,
    PersonaNotFoundError,
    VoiceUnavailableError,
)
from history_talks.services.chat import (
    CONVERSATION_GUIDELINES,
    FALLBACK_REPLY,
    ChatService,
    audio_cache_name,
    build_system_prompt,
)


@pytest.fixture
def persona(catalog, persona_data):
    return catalog.create_persona(persona_data)


@pytest.fixture
def chat(catalog, llm_provider, voiceover_provider, storage):
    return ChatService(catalog, llm=llm_provider, voiceover=voiceover_provider, storage=storage)


def test_system_prompt_appends_guidelines() -> None:
    prompt = build_system_prompt("You are Socrates.")

    assert prompt.startswith("You are Socrates.\n\n")
    assert prompt.endswith(CONVERSATION_GUIDELINES)


def test_audio_cache_name_is_stable() -> None:
    name = audio_cache_name("Socrates", "Know thyself.")

    assert name == audio_cache_name("Socrates", "Know thyself.")
    assert name != audio_cache_name("Confucius", "Know thyself.")
    assert name.endswith(".mp3")
    assert len(name) == 36


class TestSendMessage:
    """ChatService.send_message."""

    @pytest.mark.asyncio
    async def test_reply_is_stored_with_audio(self, chat, catalog, persona, media_root) -> None:
        message = await chat.send_message(persona.id, "What is a prime number?")

        assert message.sub_id == persona.id
        assert message.user_message == "What is a prime number?"
        assert message.ai_response.startswith("Hypatia here.")
        assert message.audio_url.startswith("/uploads/audio/")
        assert (media_root / "audio" / message.audio_url.rsplit("/", 1)[1]).is_file()
        assert [m.id for m in catalog.list_messages(persona.id)] == [message.id]

    @pytest.mark.asyncio
    async def test_llm_receives_prompt_and_temperature(self, chat, persona) -> None:
        with patch.object(
            chat.llm,
            "complete",
            new_callable=AsyncMock,
            return_value=LLMResponse(content="Numbers are the heart of it.", model="stub"),
        ) as complete:
            await chat.send_message(persona.id, "Why study geometry?")

        messages = complete.call_args.args[0]
        assert messages[0].role == "system"
        assert messages[0].content == build_system_prompt(persona.prompt)
        assert messages[1].content == "Why study geometry?"
        assert complete.call_args.kwargs["temperature"] == settings.chat_temperature

    @pytest.mark.asyncio
    async def test_empty_completion_uses_fallback(self, chat, persona) -> None:
        with patch.object(
            chat.llm,
            "complete",
            new_callable=AsyncMock,
            return_value=LLMResponse(content="", model="stub"),
        ):
            message = await chat.send_message(persona.id, "Hello?")

        assert message.ai_response == FALLBACK_REPLY

    @pytest.mark.asyncio
    async def test_llm_failure_raises(self, chat, catalog, persona) -> None:
        with patch.object(
            chat.llm,
            "complete",
            new_callable=AsyncMock,
            side_effect=httpx.ConnectError("connection refused"),
        ):
            with pytest.raises(ChatCompletionError):
                await chat.send_message(persona.id, "Hello?")

        assert catalog.list_messages(persona.id) == []

    @pytest.mark.asyncio
    async def test_unknown_persona(self, chat) -> None:
        with pytest.raises(PersonaNotFoundError):
            await chat.send_message(999, "Hello?")

    @pytest.mark.asyncio
    async def test_voice_file_takes_precedence(self, chat, catalog, persona) -> None:
        catalog.set_voice_file(persona.id, "/uploads/voices/hypatia.mp3")

        with patch.object(chat.voiceover, "generate", new_callable=AsyncMock) as generate:
            message = await chat.send_message(persona.id, "Hello?")

        assert message.audio_url == "/uploads/voices/hypatia.mp3"
        generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured_tts_leaves_audio_empty(self, chat, persona) -> None:
        with patch.object(
            StubVoiceoverProvider, "available", new_callable=PropertyMock, return_value=False
        ):
            message = await chat.send_message(persona.id, "Hello?")

        assert message.audio_url is None

    @pytest.mark.asyncio
    async def test_tts_failure_does_not_fail_message(self, chat, persona) -> None:
        with patch.object(
            chat.voiceover,
            "generate",
            new_callable=AsyncMock,
            return_value=VoiceoverResult(success=False, error_message="quota exceeded"),
        ):
            message = await chat.send_message(persona.id, "Hello?")

        assert message.ai_response
        assert message.audio_url is None


class TestGenerateVoice:
    """ChatService.generate_voice."""

    @pytest.mark.asyncio
    async def test_synthesized_audio_is_cached(self, chat) -> None:
        first = await chat.generate_voice("To be is to do.", "Socrates")

        with patch.object(chat.voiceover, "generate", new_callable=AsyncMock) as generate:
            second = await chat.generate_voice("To be is to do.", "Socrates")

        assert first == second
        assert first == f"/uploads/audio/{audio_cache_name('Socrates', 'To be is to do.')}"
        generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_uses_figure_voice(self, chat) -> None:
        with patch.object(
            chat.voiceover,
            "generate",
            new_callable=AsyncMock,
            return_value=VoiceoverResult(success=True, audio_data=b"ID3"),
        ) as generate:
            await chat.generate_voice("Hello", "Socrates")

        assert generate.call_args.args[0].voice_id == "stub:Socrates"

    @pytest.mark.asyncio
    async def test_persona_voice_file_short_circuits(self, chat, catalog, persona) -> None:
        catalog.set_voice_file(persona.id, "/uploads/voices/hypatia.mp3")

        url = await chat.generate_voice("Hello", "Hypatia", persona_id=persona.id)

        assert url == "/uploads/voices/hypatia.mp3"

    @pytest.mark.asyncio
    async def test_failure_returns_empty(self, chat) -> None:
        with patch.object(
            chat.voiceover,
            "generate",
            new_callable=AsyncMock,
            return_value=VoiceoverResult(success=False, error_message="bad voice"),
        ):
            assert await chat.generate_voice("Hello", "Socrates") == ""

    @pytest.mark.asyncio
    async def test_unavailable_provider_raises(self, chat) -> None:
        with patch.object(
            StubVoiceoverProvider, "available", new_callable=PropertyMock, return_value=False
        ):
            with pytest.raises(VoiceUnavailableError):
                await chat.generate_voice("Hello", "Socrates")
