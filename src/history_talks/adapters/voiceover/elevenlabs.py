"""ElevenLabs text-to-speech provider."""

from typing import Any

import httpx

from history_talks.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from history_talks.config import settings
from history_talks.logging import get_logger

logger = get_logger(__name__)


class ElevenLabsProvider(VoiceoverProvider):
    """ElevenLabs API provider with a voice picked per historical figure."""

    FIGURE_VOICES = {
        "Albert Einstein": "TxGEqnHWrfWFTfGW9XjX",
        "Leonardo da Vinci": "VR6AewLTigWG4xSOukaG",
        "Nikola Tesla": "ErXwobaYiN019PkySvjV",
        "Socrates": "pNInz6obpgDQGcFmaJgB",
        "Confucius": "N2lVS1w4EtoT3dr4eOWO",
        "Nelson Mandela": "bVMeCyTHy58xNoL34h3p",
        "Marie Curie": "EXAVITQu4vr4xnSDxMaL",
        "Frida Kahlo": "AZnzlk1XvdvUeBnXmlld",
        "Aretha Franklin": "z9fAnlkpzviPz146aGWa",
        "Ada Lovelace": "XB0fDUnXU5powFXDhCwa",
    }
    DEFAULT_MALE = "ErXwobaYiN019PkySvjV"
    DEFAULT_FEMALE = "EXAVITQu4vr4xnSDxMaL"

    VOICE_SETTINGS = {
        "stability": 0.75,
        "similarity_boost": 0.75,
        "style": 0.5,
        "use_speaker_boost": True,
    }

    def __init__(
        self,
        api_key: str | None = None,
        model_id: str | None = None,
        base_url: str = "https://api.elevenlabs.io/v1",
    ) -> None:
        self.api_key = api_key or settings.elevenlabs_api_key
        self.model_id = model_id or settings.elevenlabs_model_id
        self.base_url = base_url

        if not self.api_key:
            logger.warning("elevenlabs_api_key_missing")

    @property
    def name(self) -> str:
        return "elevenlabs"

    @property
    def available(self) -> bool:
        return bool(self.api_key)

    def voice_for_figure(self, figure_name: str) -> str:
        voice_id = self.FIGURE_VOICES.get(figure_name)
        if voice_id:
            return voice_id
        # Rough fallback for figures without a curated voice
        first_name = figure_name.split(" ", 1)[0]
        return self.DEFAULT_FEMALE if first_name.endswith("a") else self.DEFAULT_MALE

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Generate speech using the ElevenLabs API."""
        if not self.api_key:
            return VoiceoverResult(
                success=False,
                error_message="ElevenLabs API key not configured",
            )

        voice_id = request.voice_id or self.DEFAULT_MALE
        headers = {
            "xi-api-key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        payload = {
            "text": request.text,
            "model_id": self.model_id,
            "voice_settings": self.VOICE_SETTINGS,
        }

        logger.info(
            "elevenlabs_generation_started",
            text_length=len(request.text),
            voice_id=voice_id,
            model=self.model_id,
        )

        try:
            async with httpx.AsyncClient(timeout=120.0) as client:
                response = await client.post(
                    f"{self.base_url}/text-to-speech/{voice_id}",
                    headers=headers,
                    params={"output_format": "mp3_44100_128"},
                    json=payload,
                )
                response.raise_for_status()
                audio_data = response.content
        except httpx.HTTPStatusError as e:
            error_msg = f"ElevenLabs API error: {e.response.status_code}"
            logger.error("elevenlabs_api_error", error=error_msg, body=e.response.text[:500])
            return VoiceoverResult(success=False, error_message=error_msg)
        except httpx.HTTPError as e:
            logger.error("elevenlabs_generation_error", error=str(e))
            return VoiceoverResult(success=False, error_message=str(e))

        logger.info("elevenlabs_generation_completed", audio_size=len(audio_data))
        return VoiceoverResult(
            success=True,
            audio_data=audio_data,
            metadata={"provider": self.name, "voice_id": voice_id, "model_id": self.model_id},
        )

    async def list_voices(self) -> list[dict[str, Any]]:
        """List available voices from ElevenLabs."""
        if not self.api_key:
            return []
        try:
            async with httpx.AsyncClient(timeout=30.0) as client:
                response = await client.get(
                    f"{self.base_url}/voices",
                    headers={"xi-api-key": self.api_key},
                )
                response.raise_for_status()
                return response.json().get("voices", [])
        except httpx.HTTPError as e:
            logger.error("elevenlabs_list_voices_error", error=str(e))
            return []
