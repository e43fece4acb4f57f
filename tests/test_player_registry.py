"""Tests for the single-active video player registry."""

import asyncio

import pytest

from history_talks.domain.enums import PlayerState
from history_talks.errors import PlaybackError, PlaybackNotAllowedError
from history_talks.playback import (
    HAVE_ENOUGH_DATA,
    HAVE_NOTHING,
    NETWORK_EMPTY,
    PlaybackHandle,
    VideoPlayerRegistry,
)
from history_talks.playback.handle import NETWORK_IDLE


class FakeHandle(PlaybackHandle):
    """In-memory stand-in for a video element."""

    def __init__(
        self,
        ready_state: int = HAVE_ENOUGH_DATA,
        reject: list[Exception] | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.paused = True
        self.current_time = 0.0
        self.volume = 1.0
        self.muted = False
        self._ready_state = ready_state
        self._network_state = NETWORK_IDLE
        self.reject = list(reject or [])
        self.gate = gate
        self.source_attached = True
        self.play_calls = 0
        self.load_calls = 0
        self.volume_at_play: list[float] = []

    @property
    def ready_state(self) -> int:
        return self._ready_state

    @property
    def network_state(self) -> int:
        return self._network_state

    async def play(self) -> None:
        self.play_calls += 1
        self.volume_at_play.append(self.volume)
        if self.gate is not None:
            await self.gate.wait()
        if self.reject:
            raise self.reject.pop(0)
        self.paused = False
        self.current_time = 12.5

    def pause(self) -> None:
        self.paused = True

    def load(self) -> None:
        self.load_calls += 1
        if not self.source_attached:
            self._ready_state = HAVE_NOTHING
            self._network_state = NETWORK_EMPTY

    def detach_source(self) -> None:
        self.source_attached = False


@pytest.fixture
def registry() -> VideoPlayerRegistry:
    return VideoPlayerRegistry(
        sweep_interval=0.01,
        fade_in_volume=0.1,
        fade_in_restore_seconds=0.01,
    )


class TestRegistration:
    def test_register_and_unregister(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle(), large_asset=True)

        assert registry.state_of(1) is PlayerState.IDLE
        assert registry.is_large_asset(1) is True

        registry.unregister(1)

        assert registry.get(1) is None
        assert registry.is_large_asset(1) is False

    def test_unregister_does_not_pause(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle()
        handle.paused = False
        registry.register(1, handle)

        registry.unregister(1)

        assert handle.paused is False

    def test_unknown_id_is_not_large(self, registry: VideoPlayerRegistry) -> None:
        assert registry.is_large_asset(42) is False


class TestPlay:
    """Starting playback while enforcing a single active player."""

    @pytest.mark.asyncio
    async def test_play_starts_with_fade_in(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle()
        handle.volume = 0.8
        registry.register(1, handle)

        outcome = await registry.play(1)

        assert outcome.started is True
        assert handle.volume_at_play == [0.1]
        await asyncio.sleep(0.05)
        assert handle.volume == 0.8

    @pytest.mark.asyncio
    async def test_single_active_player(self, registry: VideoPlayerRegistry) -> None:
        handles = {pid: FakeHandle() for pid in (1, 2, 3)}
        for pid, handle in handles.items():
            registry.register(pid, handle)

        for pid in (1, 2, 3, 1, 3):
            await registry.play(pid)
            assert registry.playing_ids() == [pid]

        assert handles[1].paused is True
        assert handles[1].current_time == 0.0
        assert handles[3].paused is False

    @pytest.mark.asyncio
    async def test_large_asset_releases_source(self, registry: VideoPlayerRegistry) -> None:
        large = FakeHandle()
        other = FakeHandle()
        registry.register(1, large, large_asset=True)
        registry.register(2, other)

        await registry.play(1)
        await registry.play(2)

        assert large.paused is True
        assert large.source_attached is False
        assert large.ready_state == HAVE_NOTHING
        assert registry.state_of(1) is PlayerState.IDLE

    @pytest.mark.asyncio
    async def test_regular_asset_is_only_rewound(self, registry: VideoPlayerRegistry) -> None:
        regular = FakeHandle()
        registry.register(1, regular)
        registry.register(2, FakeHandle())

        await registry.play(1)
        await registry.play(2)

        assert regular.paused is True
        assert regular.current_time == 0.0
        assert regular.source_attached is True
        assert regular.ready_state == HAVE_ENOUGH_DATA

    @pytest.mark.asyncio
    async def test_autoplay_block_retries_muted(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle(reject=[PlaybackNotAllowedError("autoplay blocked")])
        registry.register(1, handle)

        outcome = await registry.play(1)

        assert outcome.started is True
        assert outcome.muted_fallback is True
        assert handle.muted is True
        assert handle.play_calls == 2

    @pytest.mark.asyncio
    async def test_muted_retry_failure_is_error(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle(
            reject=[PlaybackNotAllowedError("blocked"), PlaybackNotAllowedError("still blocked")]
        )
        handle.volume = 0.6
        registry.register(1, handle)
        registry.register(2, FakeHandle())
        await registry.play(2)

        outcome = await registry.play(1)

        assert outcome.state is PlayerState.ERROR
        assert outcome.error == "still blocked"
        assert registry.state_of(1) is PlayerState.ERROR
        assert handle.volume == 0.6
        assert handle.play_calls == 2

    @pytest.mark.asyncio
    async def test_decode_error_is_not_retried(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle(reject=[PlaybackError("decode failed")])
        registry.register(1, handle)

        outcome = await registry.play(1)

        assert outcome.state is PlayerState.ERROR
        assert outcome.muted_fallback is False
        assert handle.play_calls == 1

    @pytest.mark.asyncio
    async def test_error_does_not_affect_others(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle(reject=[PlaybackError("decode failed")]))
        registry.register(2, FakeHandle())

        await registry.play(1)
        outcome = await registry.play(2)

        assert outcome.started is True
        assert registry.state_of(1) is PlayerState.ERROR

    @pytest.mark.asyncio
    async def test_superseded_attempt_is_ignored(self, registry: VideoPlayerRegistry) -> None:
        gate = asyncio.Event()
        slow = FakeHandle(gate=gate)
        registry.register(1, slow)
        registry.register(2, FakeHandle())

        slow_attempt = asyncio.create_task(registry.play(1))
        await asyncio.sleep(0)
        assert registry.state_of(1) is PlayerState.LOADING

        await registry.play(2)
        gate.set()
        outcome = await slow_attempt

        assert outcome.superseded is True
        assert registry.playing_ids() == [2]
        assert registry.state_of(1) is PlayerState.IDLE
        assert slow.paused is True

    @pytest.mark.asyncio
    async def test_native_playing_wins_over_pending_start(
        self, registry: VideoPlayerRegistry
    ) -> None:
        native = FakeHandle()
        gate = asyncio.Event()
        pending = FakeHandle(gate=gate)
        registry.register(1, native)
        registry.register(2, pending)

        attempt = asyncio.create_task(registry.play(2))
        await asyncio.sleep(0)
        native.paused = False
        registry.handle_event(1, "playing")
        gate.set()
        outcome = await attempt

        assert outcome.superseded is True
        assert registry.playing_ids() == [1]
        assert pending.paused is True
        assert native.paused is False

    @pytest.mark.asyncio
    async def test_sweep_reload_keeps_pending_start_current(
        self, registry: VideoPlayerRegistry
    ) -> None:
        gate = asyncio.Event()
        handle = FakeHandle(ready_state=HAVE_NOTHING, gate=gate)
        registry.register(1, handle)

        attempt = asyncio.create_task(registry.play(1))
        await asyncio.sleep(0)
        registry.sweep()
        assert registry.sweep() == [1]
        gate.set()
        outcome = await attempt

        assert outcome.superseded is False
        assert outcome.started is True
        assert registry.state_of(1) is PlayerState.PLAYING
        assert registry.playing_ids() == [1]

    @pytest.mark.asyncio
    async def test_play_unregistered(self, registry: VideoPlayerRegistry) -> None:
        outcome = await registry.play(99)

        assert outcome.started is False
        assert outcome.error == "player not registered"


class TestEvents:
    def test_event_transitions(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle())

        assert registry.handle_event(1, "loadstart") is PlayerState.LOADING
        assert registry.handle_event(1, "canplay") is PlayerState.READY
        assert registry.handle_event(1, "playing") is PlayerState.PLAYING
        assert registry.handle_event(1, "ended") is PlayerState.IDLE

    def test_error_only_from_loading_or_playing(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle())

        assert registry.handle_event(1, "error") is PlayerState.IDLE
        registry.handle_event(1, "loadstart")
        assert registry.handle_event(1, "error") is PlayerState.ERROR

    def test_native_playing_stops_others(self, registry: VideoPlayerRegistry) -> None:
        first = FakeHandle()
        registry.register(1, first)
        registry.register(2, FakeHandle())
        registry.handle_event(1, "playing")
        first.paused = False

        registry.handle_event(2, "playing")

        assert registry.playing_ids() == [2]
        assert first.paused is True

    def test_unknown_event_or_id(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle())

        assert registry.handle_event(1, "timeupdate") is None
        assert registry.handle_event(2, "playing") is None


class TestSweep:
    """Reloading players stuck without data."""

    def test_stalled_player_reloaded_on_second_sweep(self, registry: VideoPlayerRegistry) -> None:
        stuck = FakeHandle(ready_state=HAVE_NOTHING)
        stuck.paused = False
        original = registry.register(1, stuck, large_asset=True)

        assert registry.sweep() == []
        assert stuck.load_calls == 0
        assert registry.sweep() == [1]
        assert stuck.load_calls == 1

        reloaded = registry.get(1)
        assert reloaded is original
        assert reloaded.handle is stuck
        assert reloaded.large_asset is True
        assert reloaded.state is PlayerState.LOADING
        assert reloaded.stalled_sweeps == 0

    def test_recovered_player_is_not_reloaded(self, registry: VideoPlayerRegistry) -> None:
        handle = FakeHandle(ready_state=HAVE_NOTHING)
        handle.paused = False
        registry.register(1, handle)

        registry.sweep()
        handle._ready_state = HAVE_ENOUGH_DATA

        assert registry.sweep() == []
        assert handle.load_calls == 0

    def test_paused_empty_player_is_left_alone(self, registry: VideoPlayerRegistry) -> None:
        registry.register(1, FakeHandle(ready_state=HAVE_NOTHING))

        registry.sweep()

        assert registry.sweep() == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_background_sweep(self, registry: VideoPlayerRegistry) -> None:
        stuck = FakeHandle(ready_state=HAVE_NOTHING)
        stuck.paused = False

        async with registry:
            registry.register(1, stuck)
            await asyncio.sleep(0.1)

        assert stuck.load_calls >= 1
        assert registry.get(1) is None

    @pytest.mark.asyncio
    async def test_close_restores_pending_volume(self) -> None:
        registry = VideoPlayerRegistry(
            sweep_interval=60, fade_in_volume=0.1, fade_in_restore_seconds=60
        )
        handle = FakeHandle()
        handle.volume = 0.9
        await registry.start()
        registry.register(1, handle)
        await registry.play(1)
        assert handle.volume == 0.1

        await registry.close()

        assert handle.volume == 0.9
