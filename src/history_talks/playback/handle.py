"""Playback handle interface mirroring the media element surface."""

from abc import ABC, abstractmethod

# readyState values
HAVE_NOTHING = 0
HAVE_METADATA = 1
HAVE_CURRENT_DATA = 2
HAVE_FUTURE_DATA = 3
HAVE_ENOUGH_DATA = 4

# networkState values
NETWORK_EMPTY = 0
NETWORK_IDLE = 1
NETWORK_LOADING = 2
NETWORK_NO_SOURCE = 3


class PlaybackHandle(ABC):
    """A live video element the registry can drive.

    Implementations wrap whatever actually decodes the video. `play()` raises
    PlaybackNotAllowedError when an autoplay policy rejects unmuted playback
    and PlaybackError for any other start failure.
    """

    paused: bool
    current_time: float
    volume: float
    muted: bool

    @property
    @abstractmethod
    def ready_state(self) -> int:
        """How much media data is buffered (HAVE_* constants)."""
        ...

    @property
    @abstractmethod
    def network_state(self) -> int:
        """Fetch status of the media source (NETWORK_* constants)."""
        ...

    @abstractmethod
    async def play(self) -> None:
        ...

    @abstractmethod
    def pause(self) -> None:
        ...

    @abstractmethod
    def load(self) -> None:
        """Restart the resource selection; drops buffered data."""
        ...

    @abstractmethod
    def detach_source(self) -> None:
        """Remove the media source so the decoder can release its buffers."""
        ...
