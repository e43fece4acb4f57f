"""Persona chat: LLM replies plus a best-effort spoken rendition."""

import hashlib

import httpx

from history_talks.adapters.llm import LLMMessage, LLMProvider, get_llm_provider
from history_talks.adapters.voiceover import (
    VoiceoverProvider,
    VoiceoverRequest,
    get_voiceover_provider,
)
from history_talks.config import settings
from history_talks.db.models import MessageModel, PersonaModel
from history_talks.errors import ChatCompletionError, VoiceUnavailableError
from history_talks.logging import get_logger
from history_talks.services.catalog import PersonaCatalog
from history_talks.services.storage import AUDIO_DIR, MediaStorage

logger = get_logger(__name__)

FALLBACK_REPLY = "I'm sorry, I couldn't generate a response."

CONVERSATION_GUIDELINES = """IMPORTANT CONVERSATION GUIDELINES:
1. Keep responses extremely concise - just ONE PARAGRAPH or at most one and a half paragraphs
2. Use a warm, friendly tone that matches your historical personality
3. Start with a direct answer before briefly elaborating
4. Include one brief interesting fact or perspective
5. Avoid all lengthy explanations and academic language
6. Use simple, conversational language as if speaking to a friend
7. If relevant, include your famous quote very briefly
8. End with a short question to encourage conversation
9. Maintain a casual, accessible speaking style
10. Aim for responses that would sound natural in speech (30-60 seconds when spoken)

Remember: This is a casual chat, not a lecture. Be brief, warm, and engaging."""


def build_system_prompt(persona_prompt: str) -> str:
    return f"{persona_prompt}\n\n{CONVERSATION_GUIDELINES}"


def audio_cache_name(figure_name: str, text: str) -> str:
    """Cache file name for a synthesized line; identical requests share a file."""
    digest = hashlib.md5(f"{figure_name}-{text}".encode()).hexdigest()
    return f"{digest}.mp3"


class ChatService:
    """Produces persona replies and records them in the message log."""

    def __init__(
        self,
        catalog: PersonaCatalog,
        llm: LLMProvider | None = None,
        voiceover: VoiceoverProvider | None = None,
        storage: MediaStorage | None = None,
    ) -> None:
        self.catalog = catalog
        self.llm = llm or get_llm_provider()
        self.voiceover = voiceover or get_voiceover_provider()
        self.storage = storage or MediaStorage()

    async def send_message(self, persona_id: int, user_message: str) -> MessageModel:
        """Ask the persona a question and store the exchange.

        Raises:
            PersonaNotFoundError: Unknown persona id
            ChatCompletionError: The LLM provider failed
        """
        persona = self.catalog.require_persona(persona_id)

        messages = [
            LLMMessage(role="system", content=build_system_prompt(persona.prompt)),
            LLMMessage(role="user", content=user_message),
        ]
        try:
            response = await self.llm.complete(messages, temperature=settings.chat_temperature)
        except (httpx.HTTPError, ValueError) as e:
            logger.error("chat_completion_failed", persona_id=persona_id, error=str(e))
            raise ChatCompletionError(str(e)) from e

        ai_response = response.content or FALLBACK_REPLY
        audio_url = await self._audio_for_reply(persona, ai_response)

        message = self.catalog.create_message(persona_id, user_message, ai_response, audio_url)
        logger.info(
            "chat_message_created",
            persona_id=persona_id,
            message_id=message.id,
            has_audio=bool(audio_url),
        )
        return message

    async def _audio_for_reply(self, persona: PersonaModel, text: str) -> str:
        if persona.voice_file:
            return persona.voice_file
        if not self.voiceover.available:
            logger.info("chat_audio_skipped", persona_id=persona.id, reason="no_tts_provider")
            return ""
        # Audio is optional; a synthesis failure never fails the message
        return await self.synthesize(text, persona.name)

    async def synthesize(self, text: str, figure_name: str) -> str:
        """Speak text in the figure's voice; returns the audio URL or ''."""
        target = self.storage.root / AUDIO_DIR / audio_cache_name(figure_name, text)
        if target.is_file():
            return self.storage.url_for(target)

        result = await self.voiceover.generate(
            VoiceoverRequest(text=text, voice_id=self.voiceover.voice_for_figure(figure_name))
        )
        if not result.success or not result.audio_data:
            logger.warning(
                "voice_generation_failed",
                figure=figure_name,
                error=result.error_message,
            )
            return ""

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(result.audio_data)
        logger.info("voice_generated", figure=figure_name, audio_file=target.name)
        return self.storage.url_for(target)

    async def generate_voice(
        self,
        text: str,
        figure_name: str,
        persona_id: int | None = None,
    ) -> str:
        """Audio URL for an arbitrary line, preferring the persona's own voice clip.

        Raises:
            VoiceUnavailableError: No speech provider is configured
        """
        if not self.voiceover.available:
            raise VoiceUnavailableError(
                "Voice generation is not available - ELEVENLABS_API_KEY is not configured"
            )
        if persona_id is not None:
            persona = self.catalog.get_persona(persona_id)
            if persona is not None and persona.voice_file:
                return persona.voice_file
        return await self.synthesize(text, figure_name)
