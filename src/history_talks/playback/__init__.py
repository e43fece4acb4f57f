"""Client-side video player coordination."""

from history_talks.playback.handle import (
    HAVE_ENOUGH_DATA,
    HAVE_NOTHING,
    NETWORK_EMPTY,
    PlaybackHandle,
)
from history_talks.playback.registry import (
    PlaybackOutcome,
    PlayerRegistration,
    VideoPlayerRegistry,
)

__all__ = [
    "HAVE_ENOUGH_DATA",
    "HAVE_NOTHING",
    "NETWORK_EMPTY",
    "PlaybackHandle",
    "PlaybackOutcome",
    "PlayerRegistration",
    "VideoPlayerRegistry",
]
