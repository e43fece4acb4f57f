"""Domain exceptions."""


class HistoryTalksError(Exception):
    """Base class for application errors."""


class PersonaNotFoundError(HistoryTalksError):
    """Raised when a persona id does not exist in the catalog."""

    def __init__(self, persona_id: int) -> None:
        super().__init__(f"Persona {persona_id} not found")
        self.persona_id = persona_id


class InvalidMediaTypeError(HistoryTalksError):
    """Raised when an upload's MIME type is outside the expected category."""

    def __init__(self, expected: str, actual: str | None) -> None:
        super().__init__(f"Only {expected} files are allowed (got {actual or 'unknown'})")
        self.expected = expected
        self.actual = actual


class OptimizationError(HistoryTalksError):
    """Raised when the external transcoder cannot produce an optimized copy."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = "") -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class PlaybackError(HistoryTalksError):
    """Raised by a playback handle when starting playback fails."""


class PlaybackNotAllowedError(PlaybackError):
    """Playback was rejected by an autoplay policy; a muted retry may succeed."""


class ChatCompletionError(HistoryTalksError):
    """Raised when the chat provider cannot produce a persona reply."""


class VoiceUnavailableError(HistoryTalksError):
    """Raised when speech synthesis is requested but no provider is configured."""
