"""Text-to-speech adapters."""

from history_talks.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from history_talks.adapters.voiceover.elevenlabs import ElevenLabsProvider
from history_talks.adapters.voiceover.stub import StubVoiceoverProvider
from history_talks.config import settings


def get_voiceover_provider() -> VoiceoverProvider:
    """Voiceover provider selected by settings.voiceover_provider."""
    if settings.voiceover_provider == "elevenlabs":
        return ElevenLabsProvider()
    return StubVoiceoverProvider()


__all__ = [
    "VoiceoverProvider",
    "VoiceoverRequest",
    "VoiceoverResult",
    "ElevenLabsProvider",
    "StubVoiceoverProvider",
    "get_voiceover_provider",
]
