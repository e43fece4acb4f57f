"""Domain enumerations."""

from enum import StrEnum


class MediaKind(StrEnum):
    """Kinds of media a persona can carry."""

    VIDEO = "video"
    VOICE = "voice"
    AVATAR = "avatar"


class MediaCategory(StrEnum):
    """Content root subdirectories used by the reorganize job."""

    VIDEOS = "videos"
    AUDIO = "audio"
    IMAGES = "images"
    TEMP = "temp"


class PlayerState(StrEnum):
    """Lifecycle of a registered video player."""

    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    PLAYING = "playing"
    ERROR = "error"


class TaskState(StrEnum):
    """Externally visible status of a background task."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
