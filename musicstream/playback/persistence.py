"""
Player state persistence.

Maps player state onto PersistenceStore keys and back. Missing or corrupt
entries fall back to defaults instead of failing the session.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from musicstream.storage import PersistenceStore

from .queue import PlaybackQueue, RepeatMode
from .track import Track, TrackValidationError

logger = logging.getLogger(__name__)

# Storage keys (shared with the browser client)
KEY_USER = "music_app_user"
KEY_VOLUME = "music_app_volume"
KEY_QUEUE = "music_app_queue"
KEY_QUEUE_ORIGINAL = "music_app_queue_original"
KEY_CURRENT_SONG = "music_app_current_song"
KEY_SHUFFLE = "music_app_shuffle"
KEY_REPEAT = "music_app_repeat"

# Defaults
DEFAULT_VOLUME = 0.5
DEFAULT_REPEAT_MODE = RepeatMode.NONE
DEFAULT_SHUFFLE = False


def clamp_volume(value: float) -> float:
    """Clamp a volume to [0.0, 1.0]."""
    return max(0.0, min(1.0, float(value)))


@dataclass
class PersistedPlayerState:
    """Player state as read back from the store."""

    volume: float = DEFAULT_VOLUME
    shuffled: bool = DEFAULT_SHUFFLE
    repeat_mode: RepeatMode = DEFAULT_REPEAT_MODE
    tracks: list[Track] = field(default_factory=list)
    original_ids: Optional[list[str]] = None
    current_track: Optional[Track] = None

    @property
    def current_id(self) -> Optional[str]:
        return self.current_track.track_id if self.current_track else None


class PlayerStateStore:
    """Reads and writes player state through a PersistenceStore."""

    def __init__(self, store: PersistenceStore, default_volume: float = DEFAULT_VOLUME):
        self.store = store
        self.default_volume = clamp_volume(default_volume)

    # =========================================================================
    # Save
    # =========================================================================

    def save(
        self, queue: PlaybackQueue, volume: float, current: Optional[Track] = None
    ) -> bool:
        """
        Write the full player state.

        Args:
            queue: Queue to persist
            volume: Volume level
            current: Track loaded in the player, possibly removed from the queue
                since; defaults to the queue's current track

        Returns:
            True if every key was written
        """
        if current is None:
            current = queue.current_track()
        results = [
            self.store.set(KEY_VOLUME, clamp_volume(volume)),
            self.store.set(KEY_SHUFFLE, queue.shuffled),
            self.store.set(KEY_REPEAT, queue.repeat_mode.value),
            self.store.set(KEY_QUEUE, [t.to_dict() for t in queue.tracks]),
            self.store.set(KEY_QUEUE_ORIGINAL, [t.track_id for t in queue.original_order]),
        ]
        if current is not None:
            results.append(self.store.set(KEY_CURRENT_SONG, current.to_dict()))
        else:
            results.append(self.store.remove(KEY_CURRENT_SONG))

        ok = all(results)
        if not ok:
            logger.warning("Some player state could not be persisted")
        return ok

    # =========================================================================
    # Load
    # =========================================================================

    def load(self) -> PersistedPlayerState:
        """Read player state, substituting defaults for bad entries."""
        state = PersistedPlayerState(
            volume=self._load_volume(),
            shuffled=self._load_shuffle(),
            repeat_mode=self._load_repeat(),
            tracks=self._load_tracks(),
            original_ids=self._load_original_ids(),
        )

        current = self.store.get(KEY_CURRENT_SONG)
        if current is not None:
            try:
                state.current_track = Track.from_api(current)
            except TrackValidationError as e:
                logger.warning(f"Ignoring stored current song: {e}")

        logger.debug(
            f"Loaded player state: volume={state.volume}, shuffle={state.shuffled}, "
            f"repeat={state.repeat_mode.value}, tracks={len(state.tracks)}"
        )
        return state

    def _load_volume(self) -> float:
        value: Any = self.store.get(KEY_VOLUME)
        if value is None:
            return self.default_volume
        if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
            logger.warning(f"Invalid stored volume {value!r}, using default")
            return self.default_volume
        return clamp_volume(value)

    def _load_shuffle(self) -> bool:
        value = self.store.get(KEY_SHUFFLE)
        if isinstance(value, bool):
            return value
        if value is not None:
            logger.warning(f"Invalid stored shuffle flag {value!r}, using default")
        return DEFAULT_SHUFFLE

    def _load_repeat(self) -> RepeatMode:
        value = self.store.get(KEY_REPEAT)
        if value is None:
            return DEFAULT_REPEAT_MODE
        mode = RepeatMode.parse(value, DEFAULT_REPEAT_MODE)
        if mode.value != str(value).lower():
            logger.warning(f"Invalid stored repeat mode {value!r}, using default")
        return mode

    def _load_tracks(self) -> list[Track]:
        value = self.store.get(KEY_QUEUE)
        if value is None:
            return []
        if not isinstance(value, list):
            logger.warning("Stored queue is not a list, starting with an empty queue")
            return []

        tracks = []
        for item in value:
            try:
                tracks.append(Track.from_api(item))
            except TrackValidationError as e:
                logger.warning(f"Skipping stored queue entry: {e}")
        return tracks

    def _load_original_ids(self) -> Optional[list[str]]:
        value = self.store.get(KEY_QUEUE_ORIGINAL)
        if not isinstance(value, list):
            return None
        return [str(v) for v in value if v is not None]
