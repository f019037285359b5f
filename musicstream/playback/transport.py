"""
MusicStream transport controller.

Core playback controller that turns user intents and media element events
into queue transitions and media element commands.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from musicstream.media import MediaElement, MediaMetadata
from musicstream.ui import (
    LoggingNotificationSink,
    NotificationLevel,
    NotificationSink,
    NullRenderer,
    ProgressTick,
    UIRenderer,
)

from .errors import (
    NoActiveTrackError,
    OutOfRangeError,
    PlaybackError,
    PlayerError,
    StaleCompletionError,
)
from .persistence import DEFAULT_VOLUME, PlayerStateStore, clamp_volume
from .queue import RESTART_THRESHOLD_SECONDS, PlaybackQueue, QueueSnapshot, QueueStep, RepeatMode
from .track import Track

logger = logging.getLogger(__name__)

# Relative seek amount (seconds)
SEEK_STEP_SECONDS = 10.0

# Relative volume change
VOLUME_STEP = 0.1

TrackStartedCallback = Callable[[Track], Awaitable[None]]


class TransportState(Enum):
    """Transport states."""

    IDLE = "idle"  # No current track
    LOADED = "loaded"  # Track loaded, not playing
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class TransportSnapshot:
    """Transport state for display."""

    state: TransportState
    track: Optional[Track]
    queue: QueueSnapshot
    volume: float
    position: float
    duration: float

    @property
    def is_playing(self) -> bool:
        return self.state == TransportState.PLAYING


class TransportController:
    """
    Main playback controller.

    The only component that issues commands to the media element and the
    only one that mutates the queue. Every state change is written through to
    the state store and pushed to the renderer.

    State machine:
        IDLE -> LOADED (track loaded without autoplay)
        IDLE/LOADED/PAUSED -> PLAYING (play succeeded)
        PLAYING -> PAUSED (pause)
        PLAYING/PAUSED -> LOADED (stop, media error, failed play)
        PLAYING -> IDLE (track ended with nothing left to play)

    Loads are numbered; a load whose completion arrives after a newer load
    was issued is discarded.
    """

    def __init__(
        self,
        queue: PlaybackQueue,
        media: MediaElement,
        state_store: PlayerStateStore,
        renderer: Optional[UIRenderer] = None,
        notifier: Optional[NotificationSink] = None,
        restart_threshold: float = RESTART_THRESHOLD_SECONDS,
        seek_step: float = SEEK_STEP_SECONDS,
        volume_step: float = VOLUME_STEP,
        default_volume: float = DEFAULT_VOLUME,
    ):
        """Initialize controller."""
        self.queue = queue
        self.media = media
        self.state_store = state_store
        self.renderer = renderer or NullRenderer()
        self.notifier = notifier or LoggingNotificationSink()

        self.restart_threshold = restart_threshold
        self.seek_step = seek_step
        self.volume_step = volume_step
        self.default_volume = clamp_volume(default_volume)

        # Track currently loaded in the media element
        self._loaded_track: Optional[Track] = None
        self._duration: float = 0.0

        self._state: TransportState = TransportState.IDLE

        # Volume
        self._volume: float = self.default_volume
        self._previous_volume: Optional[float] = None  # Restored on unmute

        # Load sequencing
        self._load_seq: int = 0
        self._latest_autoplay: bool = False

        self._on_track_started: Optional[TrackStartedCallback] = None

        logger.debug("TransportController initialized")

    def set_track_started_callback(self, callback: Optional[TrackStartedCallback]) -> None:
        """Set hook awaited after a user-initiated play() starts a track."""
        self._on_track_started = callback

    # =========================================================================
    # Session
    # =========================================================================

    async def restore(self) -> None:
        """
        Restore persisted state at session start.

        The saved current track is loaded but not played.
        """
        saved = self.state_store.load()

        self._volume = saved.volume
        await self.media.set_volume(saved.volume)
        self.renderer.render_volume(saved.volume)

        self.queue.restore(
            saved.tracks,
            original_ids=saved.original_ids,
            current_id=saved.current_id,
            shuffled=saved.shuffled,
            repeat_mode=saved.repeat_mode,
        )
        self._render_queue()

        # The saved track is loaded even if it has since left the queue
        if saved.current_track is not None:
            await self._load(saved.current_track, autoplay=False)
            return

        self._set_state(TransportState.IDLE)

    # =========================================================================
    # Playback Commands
    # =========================================================================

    async def play(self, track: Track) -> bool:
        """
        Play a track, queueing it first if needed.

        Returns:
            True if playback started
        """
        logger.info(f"Play requested: {track.track_id}")

        if self.queue.append(track):
            logger.debug(f"Queued {track.track_id} for playback")

        index = self.queue.index_of(track.track_id)
        assert index is not None
        queued = self.queue.move_to(index)
        self._commit()

        started = await self._load(queued, autoplay=True)
        if started and self._on_track_started:
            try:
                await self._on_track_started(queued)
            except Exception as e:
                logger.error(f"Track started callback error: {e}", exc_info=True)
        return started

    async def play_index(self, index: int) -> bool:
        """
        Jump to a queue position, keeping the play/pause state.

        Returns:
            True if the track was loaded (and started, if playing)
        """
        previous = self._state
        try:
            track = self.queue.move_to(index)
        except OutOfRangeError as e:
            self._report(e)
            return False

        self._commit()
        return await self._load_preserving(track, previous)

    async def toggle_play_pause(self) -> bool:
        """
        Pause when playing, play otherwise.

        Returns:
            True if the state changed
        """
        track = self._loaded_track
        if track is None or self._state == TransportState.IDLE:
            self._report(NoActiveTrackError("No song selected"), NotificationLevel.WARNING)
            return False

        if self._state == TransportState.PLAYING:
            await self.media.pause()
            self._set_state(TransportState.PAUSED)
            logger.info("Playback paused")
            return True

        if not track.is_playable:
            self._report(PlaybackError("No audio file available for this song"))
            return False

        try:
            await self.media.play()
        except Exception as e:
            logger.warning(f"Resume failed: {e}")
            self._report(PlaybackError("Error playing audio"))
            return False

        self._set_state(TransportState.PLAYING)
        logger.info("Playback resumed")
        return True

    async def stop(self) -> None:
        """Stop playback and rewind; the current track stays loaded."""
        await self.media.pause()
        if self._loaded_track is not None:
            await self.media.seek(0)
            self._set_state(TransportState.LOADED)
        else:
            self._set_state(TransportState.IDLE)
        self.renderer.render_progress(ProgressTick(0.0, self._duration))
        logger.info("Playback stopped")

    async def next(self) -> bool:
        """
        Skip to the next track.

        Returns:
            True if a track was (re)loaded, False at the end of the queue
        """
        if self.queue.is_empty:
            return False

        previous = self._state
        step = self.queue.advance()

        if step == QueueStep.RESTART:
            await self._restart_current(resume=previous == TransportState.PLAYING)
            return True

        if step == QueueStep.END:
            self.notifier.notify("End of queue", NotificationLevel.INFO)
            return False

        self._commit()
        track = self.queue.current_track()
        assert track is not None
        return await self._load_preserving(track, previous)

    async def previous(self) -> bool:
        """
        Go to the previous track, or restart the current one.

        Past the restart threshold the current track restarts instead.

        Returns:
            True if an action was taken
        """
        if self.queue.is_empty:
            return False

        previous = self._state
        elapsed = await self.media.get_current_time() if self._loaded_track else 0.0
        step = self.queue.retreat(elapsed, self.restart_threshold)

        if step == QueueStep.RESTART:
            logger.debug(f"Restarting track (position {elapsed:.1f}s)")
            await self._restart_current(resume=False)
            return True

        if step == QueueStep.END:
            return False

        self._commit()
        track = self.queue.current_track()
        assert track is not None
        return await self._load_preserving(track, previous)

    # =========================================================================
    # Seek Control
    # =========================================================================

    async def seek(self, seconds: float) -> Optional[float]:
        """
        Seek within the current track.

        Returns:
            The clamped position, or None if no track is loaded
        """
        if self._loaded_track is None:
            self._report(NoActiveTrackError("No song selected"), NotificationLevel.WARNING)
            return None

        duration = await self._known_duration()
        position = max(0.0, seconds)
        if duration > 0:
            position = min(position, duration)

        await self.media.seek(position)
        self.renderer.render_progress(ProgressTick(position, duration))
        logger.debug(f"Seeked to {position:.1f}s")
        return position

    async def seek_percent(self, percent: float) -> Optional[float]:
        """Seek to a percentage of the track; no-op while the duration is unknown."""
        duration = await self._known_duration()
        if self._loaded_track is None or duration <= 0:
            return None
        return await self.seek(percent / 100 * duration)

    async def seek_relative(self, delta: Optional[float] = None) -> Optional[float]:
        """Seek forward (positive) or back (negative); defaults to one seek step forward."""
        if self._loaded_track is None:
            return await self.seek(0)
        current = await self.media.get_current_time()
        step = self.seek_step if delta is None else delta
        return await self.seek(current + step)

    # =========================================================================
    # Volume Controls
    # =========================================================================

    async def set_volume(self, level: float) -> float:
        """
        Set absolute volume level.

        Args:
            level: Volume level, clamped to 0.0-1.0

        Returns:
            Volume after clamping
        """
        clamped = clamp_volume(level)
        await self.media.set_volume(clamped)
        self._volume = clamped
        self._persist()
        self.renderer.render_volume(clamped)
        logger.info(f"Volume set to {clamped:.2f}")
        return clamped

    async def change_volume(self, delta: Optional[float] = None) -> float:
        """Adjust volume by a relative amount (one volume step up by default)."""
        step = self.volume_step if delta is None else delta
        return await self.set_volume(self._volume + step)

    async def toggle_mute(self) -> float:
        """Mute, or restore the volume from before muting."""
        if self._volume > 0:
            self._previous_volume = self._volume
            return await self.set_volume(0.0)
        restored = self._previous_volume or self.default_volume
        self._previous_volume = None
        return await self.set_volume(restored)

    # =========================================================================
    # Queue Commands
    # =========================================================================

    def add_to_queue(self, track: Track) -> bool:
        """Queue a track; duplicates are reported, not added."""
        if not self.queue.append(track):
            self.notifier.notify("Song already in queue", NotificationLevel.INFO)
            return False
        self._commit()
        self.notifier.notify("Added to queue", NotificationLevel.SUCCESS)
        return True

    def remove_from_queue(self, index: int) -> Optional[Track]:
        """Remove a queued track; the loaded track keeps playing."""
        try:
            track = self.queue.remove_at(index)
        except OutOfRangeError as e:
            self._report(e)
            return None
        self._commit()
        return track

    def clear_queue(self) -> None:
        self.queue.clear()
        self._commit()
        self.notifier.notify("Queue cleared", NotificationLevel.INFO)

    def set_shuffle(self, enabled: bool) -> None:
        self.queue.set_shuffled(enabled)
        self._commit()
        self.notifier.notify(f"Shuffle {'on' if enabled else 'off'}", NotificationLevel.INFO)

    def toggle_shuffle(self) -> bool:
        self.set_shuffle(not self.queue.shuffled)
        return self.queue.shuffled

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        self.queue.set_repeat_mode(mode)
        self._commit()
        labels = {
            RepeatMode.ONE: "Repeat one",
            RepeatMode.ALL: "Repeat all",
            RepeatMode.NONE: "Repeat off",
        }
        self.notifier.notify(labels[mode], NotificationLevel.INFO)

    def toggle_repeat(self) -> RepeatMode:
        self.set_repeat_mode(self.queue.repeat_mode.next())
        return self.queue.repeat_mode

    # =========================================================================
    # Media Element Events
    # =========================================================================
    #
    # Signals carry the load sequence number current when the media element
    # fired them. Signals from a superseded load are dropped; seq=None means
    # "the current load".

    async def on_media_ended(self, seq: Optional[int] = None) -> None:
        """Handle natural end of the current track."""
        if self._loaded_track is None or not self._is_current_signal("ended", seq):
            return

        logger.info("Track ended naturally")
        step = self.queue.advance()

        if step == QueueStep.RESTART:
            await self._restart_current(resume=True)
            return

        if step == QueueStep.MOVED:
            self._commit()
            track = self.queue.current_track()
            assert track is not None
            await self._load(track, autoplay=True)
            return

        # Queue exhausted
        logger.info("No next track available - playback stopped")
        await self.media.pause()
        self._loaded_track = None
        self._duration = 0.0
        self.renderer.render_track(None)
        self._set_state(TransportState.IDLE)

    async def on_media_error(self, message: str, seq: Optional[int] = None) -> None:
        """Handle an error event from the media element."""
        if not self._is_current_signal("error", seq):
            return
        logger.error(f"Media error: {message}")
        if self._loaded_track is None:
            return
        self._report(PlaybackError("Error loading audio file"))
        self._set_state(TransportState.LOADED)

    def on_loaded_metadata(self, duration: float, seq: Optional[int] = None) -> None:
        """Duration became known for the loaded source."""
        if not self._is_current_signal("loadedmetadata", seq):
            return
        if duration > 0:
            self._duration = duration
        self.renderer.render_progress(ProgressTick(0.0, self._duration))

    def on_time_update(self, current_time: float, seq: Optional[int] = None) -> None:
        """Position changed; display only."""
        if not self._is_current_signal("timeupdate", seq):
            return
        self.renderer.render_progress(ProgressTick(current_time, self._duration))

    def _is_current_signal(self, name: str, seq: Optional[int]) -> bool:
        if seq is None:
            return True
        try:
            self._check_current(seq)
        except StaleCompletionError as e:
            logger.debug(f"Discarding stale {name} signal: {e}")
            return False
        return True

    # =========================================================================
    # Internal Playback Management
    # =========================================================================

    async def _load_preserving(self, track: Track, previous: TransportState) -> bool:
        """Load a track, playing it only if playback was running."""
        autoplay = previous == TransportState.PLAYING
        loaded = await self._load(track, autoplay=autoplay)
        if loaded and previous == TransportState.PAUSED:
            self._set_state(TransportState.PAUSED)
        return loaded

    async def _load(self, track: Track, autoplay: bool) -> bool:
        """
        Load a track into the media element, optionally starting it.

        Returns:
            True if the track was loaded (and started, when autoplay is set)
        """
        self._load_seq += 1
        seq = self._load_seq
        self._latest_autoplay = autoplay

        self._loaded_track = track
        self._duration = track.duration
        self.renderer.render_track(track)
        logger.info(f"Loading track #{seq}: {track.track_id}")

        if not track.is_playable:
            await self.media.pause()
            self._set_state(TransportState.LOADED)
            self._report(
                PlaybackError("No audio file available for this song"), NotificationLevel.WARNING
            )
            return False

        try:
            await self.media.load(track.audio_url or "", self._media_metadata(track))
            self._check_current(seq)

            if not autoplay:
                self._set_state(TransportState.LOADED)
                return True

            try:
                await self.media.play()
            except Exception as e:
                self._check_current(seq)
                logger.warning(f"Playback rejected for {track.track_id}: {e}")
                self._set_state(TransportState.LOADED)
                self._report(PlaybackError("Unable to play this song"))
                return False

            self._check_current(seq)
            self._set_state(TransportState.PLAYING)
            return True

        except StaleCompletionError as e:
            logger.debug(f"Discarding stale completion: {e}")
            if not self._latest_autoplay and not self.media.is_paused():
                await self.media.pause()
            return False

    def _check_current(self, seq: int) -> None:
        if seq != self._load_seq:
            raise StaleCompletionError(seq, self._load_seq)

    async def _restart_current(self, resume: bool) -> None:
        await self.media.seek(0)
        self.renderer.render_progress(ProgressTick(0.0, self._duration))
        if not resume:
            return
        try:
            await self.media.play()
        except Exception as e:
            logger.warning(f"Restart failed: {e}")
            self._set_state(TransportState.LOADED)
            self._report(PlaybackError("Unable to play this song"))
            return
        self._set_state(TransportState.PLAYING)

    async def _known_duration(self) -> float:
        duration = await self.media.get_duration()
        return duration if duration > 0 else self._duration

    @staticmethod
    def _media_metadata(track: Track) -> MediaMetadata:
        return MediaMetadata(
            track_id=track.track_id,
            title=track.title,
            artist=track.artist_name,
            album=track.album.title if track.album else "",
            duration=track.duration,
            artwork_url=track.cover_image,
        )

    # =========================================================================
    # State Propagation
    # =========================================================================

    def _set_state(self, state: TransportState) -> None:
        if state != self._state:
            logger.debug(f"Transport state: {self._state.value} -> {state.value}")
        self._state = state
        self._persist()
        self.renderer.render_state(state)

    def _commit(self) -> None:
        """Persist and render after a queue change."""
        self._persist()
        self._render_queue()

    def _persist(self) -> None:
        self.state_store.save(self.queue, self._volume, self._loaded_track)

    def _render_queue(self) -> None:
        self.renderer.render_queue(self.queue.snapshot())

    def _report(
        self, error: PlayerError, level: NotificationLevel = NotificationLevel.ERROR
    ) -> None:
        logger.warning(f"{type(error).__name__}: {error}")
        self.notifier.notify(str(error), level)

    # =========================================================================
    # State Access
    # =========================================================================

    @property
    def state(self) -> TransportState:
        """Get current transport state."""
        return self._state

    @property
    def current_track(self) -> Optional[Track]:
        """Track loaded in the media element."""
        return self._loaded_track

    @property
    def load_seq(self) -> int:
        """Sequence number of the most recent load."""
        return self._load_seq

    @property
    def volume(self) -> float:
        return self._volume

    @property
    def is_muted(self) -> bool:
        return self._volume == 0

    async def get_state(self) -> TransportSnapshot:
        """Get current state for display."""
        position = await self.media.get_current_time() if self._loaded_track else 0.0
        return TransportSnapshot(
            state=self._state,
            track=self._loaded_track,
            queue=self.queue.snapshot(),
            volume=self._volume,
            position=position,
            duration=await self._known_duration() if self._loaded_track else 0.0,
        )
