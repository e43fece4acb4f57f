"""Single-active video player registry."""

import asyncio
from dataclasses import dataclass
from types import TracebackType

from history_talks.config import settings
from history_talks.domain.enums import PlayerState
from history_talks.errors import PlaybackError, PlaybackNotAllowedError
from history_talks.logging import get_logger
from history_talks.playback.handle import HAVE_NOTHING, PlaybackHandle

logger = get_logger(__name__)

_TRANSITIONS: dict[PlayerState, set[PlayerState]] = {
    PlayerState.IDLE: {PlayerState.LOADING, PlayerState.READY, PlayerState.PLAYING},
    PlayerState.LOADING: {
        PlayerState.READY,
        PlayerState.PLAYING,
        PlayerState.ERROR,
        PlayerState.IDLE,
    },
    PlayerState.READY: {PlayerState.LOADING, PlayerState.PLAYING, PlayerState.IDLE},
    PlayerState.PLAYING: {PlayerState.IDLE, PlayerState.LOADING, PlayerState.ERROR},
    PlayerState.ERROR: {PlayerState.LOADING, PlayerState.IDLE},
}

_EVENT_STATES = {
    "loadstart": PlayerState.LOADING,
    "canplay": PlayerState.READY,
    "playing": PlayerState.PLAYING,
    "pause": PlayerState.IDLE,
    "ended": PlayerState.IDLE,
    "error": PlayerState.ERROR,
}


@dataclass
class PlayerRegistration:
    persona_id: int
    handle: PlaybackHandle
    large_asset: bool = False
    state: PlayerState = PlayerState.IDLE
    stalled_sweeps: int = 0
    error: str | None = None


@dataclass
class PlaybackOutcome:
    """What a play() call ended in."""

    persona_id: int
    state: PlayerState
    muted_fallback: bool = False
    superseded: bool = False
    error: str | None = None

    @property
    def started(self) -> bool:
        return self.state is PlayerState.PLAYING


class VideoPlayerRegistry:
    """Tracks every mounted video player by persona id.

    At most one registration is ever in the playing state. Starting a player
    stops all the others first; players marked as large assets additionally
    drop their media source so the decoder releases buffered memory.

    Usage:
        async with VideoPlayerRegistry() as players:
            players.register(persona.id, handle, large_asset=persona.is_large_asset)
            outcome = await players.play(persona.id)
    """

    def __init__(
        self,
        sweep_interval: float | None = None,
        fade_in_volume: float | None = None,
        fade_in_restore_seconds: float | None = None,
    ) -> None:
        self.sweep_interval = (
            sweep_interval
            if sweep_interval is not None
            else settings.player_sweep_interval_seconds
        )
        self.fade_in_volume = (
            fade_in_volume if fade_in_volume is not None else settings.player_fade_in_volume
        )
        self.fade_in_restore_seconds = (
            fade_in_restore_seconds
            if fade_in_restore_seconds is not None
            else settings.player_fade_in_restore_seconds
        )
        self._players: dict[int, PlayerRegistration] = {}
        self._volume_timers: dict[int, tuple[asyncio.TimerHandle, float]] = {}
        self._attempt = 0
        self._sweep_task: asyncio.Task[None] | None = None

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register(
        self,
        persona_id: int,
        handle: PlaybackHandle,
        large_asset: bool = False,
    ) -> PlayerRegistration:
        """Associate a handle with a persona id, replacing any previous one."""
        registration = PlayerRegistration(
            persona_id=persona_id,
            handle=handle,
            large_asset=large_asset,
        )
        self._players[persona_id] = registration
        logger.debug("player_registered", persona_id=persona_id, large_asset=large_asset)
        return registration

    def unregister(self, persona_id: int) -> None:
        """Forget a handle; the caller pauses it if it is still running."""
        self._restore_volume_now(persona_id)
        if self._players.pop(persona_id, None) is not None:
            logger.debug("player_unregistered", persona_id=persona_id)

    def get(self, persona_id: int) -> PlayerRegistration | None:
        return self._players.get(persona_id)

    def state_of(self, persona_id: int) -> PlayerState | None:
        registration = self._players.get(persona_id)
        return registration.state if registration else None

    def playing_ids(self) -> list[int]:
        return [pid for pid, reg in self._players.items() if reg.state is PlayerState.PLAYING]

    def is_large_asset(self, persona_id: int) -> bool:
        registration = self._players.get(persona_id)
        return registration is not None and registration.large_asset

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def _transition(self, registration: PlayerRegistration, state: PlayerState) -> bool:
        if registration.state is state:
            return True
        if state not in _TRANSITIONS[registration.state]:
            logger.debug(
                "player_transition_ignored",
                persona_id=registration.persona_id,
                from_state=registration.state.value,
                to_state=state.value,
            )
            return False
        registration.state = state
        return True

    def handle_event(self, persona_id: int, event: str) -> PlayerState | None:
        """Apply a media element event to the player's state."""
        registration = self._players.get(persona_id)
        target = _EVENT_STATES.get(event)
        if registration is None or target is None:
            return None
        if target is PlayerState.PLAYING:
            # Playback started outside play(), e.g. through native controls.
            # Any play() still waiting on its handle loses to this one.
            self._attempt += 1
            self.stop_all_except(persona_id)
        self._transition(registration, target)
        return registration.state

    # -------------------------------------------------------------------------
    # Playback
    # -------------------------------------------------------------------------

    def stop_all_except(self, persona_id: int) -> None:
        """Pause and rewind every other player; large assets also drop their source."""
        for other_id, registration in self._players.items():
            if other_id == persona_id:
                continue
            self._restore_volume_now(other_id)
            handle = registration.handle
            try:
                if not handle.paused:
                    handle.pause()
                handle.current_time = 0.0
                if registration.large_asset and handle.ready_state != HAVE_NOTHING:
                    handle.detach_source()
                    handle.load()
                    logger.info("player_memory_released", persona_id=other_id)
            except PlaybackError as e:
                logger.warning("player_stop_failed", persona_id=other_id, error=str(e))
                continue
            if registration.state in (PlayerState.PLAYING, PlayerState.LOADING) or (
                registration.large_asset and registration.state is PlayerState.READY
            ):
                registration.state = PlayerState.IDLE

    async def play(self, persona_id: int) -> PlaybackOutcome:
        """Start one player after stopping all the others.

        A rejected start is retried once muted. If another play() call starts
        while this one is waiting on the handle, this call's result is ignored
        and reported as superseded.
        """
        registration = self._players.get(persona_id)
        if registration is None:
            return PlaybackOutcome(
                persona_id=persona_id,
                state=PlayerState.IDLE,
                error="player not registered",
            )

        self.stop_all_except(persona_id)

        self._attempt += 1
        attempt = self._attempt
        handle = registration.handle
        self._restore_volume_now(persona_id)
        original_volume = handle.volume
        handle.volume = self.fade_in_volume
        registration.state = PlayerState.LOADING
        registration.error = None

        muted_fallback = False
        error: str | None = None
        try:
            await handle.play()
        except PlaybackNotAllowedError as e:
            logger.info("player_autoplay_blocked", persona_id=persona_id, error=str(e))
            if self._is_current(registration, attempt):
                muted_fallback = True
                handle.muted = True
                try:
                    await handle.play()
                except PlaybackError as retry_error:
                    error = str(retry_error)
            else:
                error = str(e)
        except PlaybackError as e:
            error = str(e)

        if not self._is_current(registration, attempt):
            handle.volume = original_volume
            if (
                error is None
                and self._players.get(persona_id) is registration
                and registration.state not in (PlayerState.PLAYING, PlayerState.LOADING)
            ):
                # Another player won while this start resolved; silence it
                try:
                    handle.pause()
                    handle.current_time = 0.0
                except PlaybackError as e:
                    logger.warning("player_stop_failed", persona_id=persona_id, error=str(e))
            logger.debug("player_attempt_superseded", persona_id=persona_id)
            return PlaybackOutcome(
                persona_id=persona_id,
                state=registration.state,
                muted_fallback=muted_fallback,
                superseded=True,
                error=error,
            )

        if error is not None:
            handle.volume = original_volume
            registration.state = PlayerState.ERROR
            registration.error = error
            logger.warning(
                "player_start_failed",
                persona_id=persona_id,
                muted_fallback=muted_fallback,
                error=error,
            )
            return PlaybackOutcome(
                persona_id=persona_id,
                state=PlayerState.ERROR,
                muted_fallback=muted_fallback,
                error=error,
            )

        registration.state = PlayerState.PLAYING
        self._schedule_volume_restore(persona_id, handle, original_volume)
        logger.info("player_started", persona_id=persona_id, muted=muted_fallback)
        return PlaybackOutcome(
            persona_id=persona_id,
            state=PlayerState.PLAYING,
            muted_fallback=muted_fallback,
        )

    def _is_current(self, registration: PlayerRegistration, attempt: int) -> bool:
        return (
            attempt == self._attempt
            and self._players.get(registration.persona_id) is registration
        )

    def _schedule_volume_restore(
        self,
        persona_id: int,
        handle: PlaybackHandle,
        volume: float,
    ) -> None:
        def restore() -> None:
            self._volume_timers.pop(persona_id, None)
            handle.volume = volume

        timer = asyncio.get_running_loop().call_later(self.fade_in_restore_seconds, restore)
        self._volume_timers[persona_id] = (timer, volume)

    def _restore_volume_now(self, persona_id: int) -> None:
        pending = self._volume_timers.pop(persona_id, None)
        if pending is None:
            return
        timer, volume = pending
        timer.cancel()
        registration = self._players.get(persona_id)
        if registration is not None:
            registration.handle.volume = volume

    # -------------------------------------------------------------------------
    # Stalled players
    # -------------------------------------------------------------------------

    def _is_stalled(self, registration: PlayerRegistration) -> bool:
        wants_to_play = (
            not registration.handle.paused or registration.state is PlayerState.LOADING
        )
        return wants_to_play and registration.handle.ready_state == HAVE_NOTHING

    def sweep(self) -> list[int]:
        """Reload players stuck without data for a full sweep interval.

        A stuck player is flagged on the first sweep that sees it and reloaded
        on the next one. Returns the reloaded persona ids.
        """
        reloaded = []
        for persona_id, registration in list(self._players.items()):
            if not self._is_stalled(registration):
                registration.stalled_sweeps = 0
                continue
            registration.stalled_sweeps += 1
            if registration.stalled_sweeps < 2:
                continue
            logger.warning("player_stalled_reload", persona_id=persona_id)
            registration.handle.load()
            # Same registration object, so an in-flight play() stays current
            registration.stalled_sweeps = 0
            registration.state = PlayerState.LOADING
            self._players[persona_id] = registration
            reloaded.append(persona_id)
        return reloaded

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            try:
                self.sweep()
            except PlaybackError as e:
                logger.error("player_sweep_failed", error=str(e))

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        if self._sweep_task is None:
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            logger.debug("player_registry_started", sweep_interval=self.sweep_interval)

    async def close(self) -> None:
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            try:
                await self._sweep_task
            except asyncio.CancelledError:
                pass
            self._sweep_task = None
        for persona_id in list(self._volume_timers):
            self._restore_volume_now(persona_id)
        self._players.clear()
        logger.debug("player_registry_closed")

    async def __aenter__(self) -> "VideoPlayerRegistry":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
