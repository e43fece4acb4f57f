"""Base interface for text-to-speech providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class VoiceoverRequest:
    """Request for speech synthesis."""

    text: str
    voice_id: str | None = None  # Provider-specific voice identifier
    output_format: str = "mp3"
    options: dict[str, Any] | None = None


@dataclass
class VoiceoverResult:
    """Result from speech synthesis."""

    success: bool
    audio_data: bytes | None = None
    error_message: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class VoiceoverProvider(ABC):
    """Abstract base class for text-to-speech providers.

    Implementations:
    - ElevenLabsProvider: AI voices via the ElevenLabs API
    - StubVoiceoverProvider: Returns marker bytes for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @property
    def available(self) -> bool:
        """Whether the provider is configured well enough to attempt synthesis."""
        return True

    @abstractmethod
    async def generate(self, request: VoiceoverRequest) -> VoiceoverResult:
        """Synthesize speech for request.text."""
        ...

    def voice_for_figure(self, figure_name: str) -> str | None:
        """Voice identifier to use for a historical figure."""
        return None

    async def list_voices(self) -> list[dict[str, Any]]:
        return []
