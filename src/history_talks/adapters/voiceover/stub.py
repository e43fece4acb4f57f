"""Stub voiceover provider for testing."""

from history_talks.adapters.voiceover.base import (
    VoiceoverProvider,
    VoiceoverRequest,
    VoiceoverResult,
)
from history_talks.logging import get_logger

logger = get_logger(__name__)


class StubVoiceoverProvider(VoiceoverProvider):
    """Simulates speech synthesis without external calls."""

    @property
    def name(self) -> str:
        return "stub"

    def voice_for_figure(self, figure_name: str) -> str:
        return f"stub:{figure_name}"

    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        fake_audio = b"STUB_AUDIO_DATA_" + request.text.encode()[:100]
        logger.info("stub_voiceover_generated", audio_size=len(fake_audio))
        return VoiceoverResult(
            success=True,
            audio_data=fake_audio,
            metadata={"provider": self.name, "voice_id": request.voice_id or "default"},
        )
