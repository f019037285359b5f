"""
Queue management for MusicStream.

Handles track ordering, shuffle, repeat, and cursor movement.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from .errors import OutOfRangeError
from .track import Track

logger = logging.getLogger(__name__)

# Elapsed time after which "previous" restarts the current track (seconds)
RESTART_THRESHOLD_SECONDS = 3.0


class RepeatMode(Enum):
    """Queue repeat modes."""

    NONE = "none"  # Stop after last track
    ALL = "all"  # Loop entire queue
    ONE = "one"  # Repeat current track

    def next(self) -> "RepeatMode":
        """Next mode in the toggle cycle: none -> all -> one -> none."""
        cycle = [RepeatMode.NONE, RepeatMode.ALL, RepeatMode.ONE]
        return cycle[(cycle.index(self) + 1) % len(cycle)]

    @classmethod
    def parse(cls, value: Any, default: Optional["RepeatMode"] = None) -> "RepeatMode":
        """Parse a stored value, falling back to default (NONE) when unknown."""
        if isinstance(value, RepeatMode):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return default if default is not None else cls.NONE


class QueueStep(Enum):
    """Outcome of a cursor movement."""

    MOVED = "moved"  # Cursor now points at a different track (or wrapped)
    RESTART = "restart"  # Caller should restart the current track
    END = "end"  # No next track; caller stops playback


@dataclass(frozen=True)
class QueueSnapshot:
    """
    Immutable view of the queue for rendering and persistence.
    """

    tracks: tuple[Track, ...]
    cursor: int
    shuffled: bool
    repeat_mode: RepeatMode

    @property
    def current_track(self) -> Optional[Track]:
        if not self.tracks:
            return None
        return self.tracks[self.cursor]

    @property
    def upcoming(self) -> tuple[Track, ...]:
        return self.tracks[self.cursor + 1 :]


class PlaybackQueue:
    """
    Ordered playback queue with a cursor.

    Handles:
    - Track list management (no duplicate IDs)
    - Shuffle with the current track pinned at position 0
    - Repeat modes (none, one, all)
    - Next/previous cursor movement

    All operations are synchronous and run on the event loop thread; only the
    transport controller mutates a queue.
    """

    def __init__(self, rng: Optional[random.Random] = None) -> None:
        """Initialize empty queue."""
        self._order: list[Track] = []
        self._original_order: list[Track] = []  # Pre-shuffle order
        self._cursor: int = 0

        self._shuffled: bool = False
        self._repeat_mode: RepeatMode = RepeatMode.NONE

        self._rng = rng or random.Random()

        logger.debug("PlaybackQueue initialized")

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def tracks(self) -> list[Track]:
        """Tracks in play order (copy)."""
        return list(self._order)

    @property
    def original_order(self) -> list[Track]:
        """Tracks in pre-shuffle order (copy)."""
        return list(self._original_order)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def shuffled(self) -> bool:
        return self._shuffled

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._repeat_mode

    @property
    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self._order) == 0

    def __len__(self) -> int:
        return len(self._order)

    # =========================================================================
    # Queue Management
    # =========================================================================

    def append(self, track: Track) -> bool:
        """
        Add a track at the end of the queue.

        While shuffled the track goes to the end of both the play order and
        the pre-shuffle order, so unshuffling keeps it.

        Returns:
            True if inserted, False if a track with the same ID is queued
        """
        if self.index_of(track.track_id) is not None:
            logger.debug(f"Track {track.track_id} already in queue")
            return False

        self._order.append(track)
        self._original_order.append(track)
        logger.debug(f"Appended track {track.track_id} at index {len(self._order) - 1}")
        return True

    def remove_at(self, index: int) -> Track:
        """
        Remove the track at index.

        Raises:
            OutOfRangeError: If index is not a valid position
        """
        self._check_index(index)

        track = self._order.pop(index)
        self._original_order = [t for t in self._original_order if t.track_id != track.track_id]

        if not self._order:
            self._cursor = 0
        elif index < self._cursor:
            self._cursor -= 1
        elif self._cursor >= len(self._order):
            self._cursor = len(self._order) - 1

        logger.debug(f"Removed track {track.track_id} at index {index}, cursor {self._cursor}")
        return track

    def clear(self) -> None:
        """Clear the entire queue."""
        self._order.clear()
        self._original_order.clear()
        self._cursor = 0
        logger.info("Queue cleared")

    def move_to(self, index: int) -> Track:
        """
        Point the cursor at index.

        Raises:
            OutOfRangeError: If index is not a valid position
        """
        self._check_index(index)
        self._cursor = index
        return self._order[index]

    def index_of(self, track_id: str) -> Optional[int]:
        """Position of a track ID in play order, or None."""
        for i, track in enumerate(self._order):
            if track.track_id == track_id:
                return i
        return None

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._order):
            raise OutOfRangeError(index, len(self._order))

    # =========================================================================
    # Shuffle Mode
    # =========================================================================

    def set_shuffled(self, enabled: bool) -> None:
        """
        Enable or disable shuffle mode.

        Enabling snapshots the play order, pins the current track at
        position 0 and permutes the rest. Disabling restores the snapshot and
        follows the current track by ID (cursor 0 if it is gone).
        """
        if enabled == self._shuffled:
            return

        self._shuffled = enabled
        if enabled:
            self._apply_shuffle()
        else:
            self._restore_original_order()

        logger.info(f"Shuffle mode: {enabled}")

    def _apply_shuffle(self) -> None:
        self._original_order = list(self._order)
        if len(self._order) <= 1:
            self._cursor = 0
            return

        current = self._order[self._cursor]
        rest = [t for i, t in enumerate(self._order) if i != self._cursor]
        self._rng.shuffle(rest)

        self._order = [current] + rest
        self._cursor = 0
        logger.debug(f"Shuffle applied, order: {[t.track_id for t in self._order[:10]]}...")

    def _restore_original_order(self) -> None:
        current = self.current_track()
        self._order = list(self._original_order)

        self._cursor = 0
        if current is not None:
            index = self.index_of(current.track_id)
            if index is not None:
                self._cursor = index

    # =========================================================================
    # Repeat Mode
    # =========================================================================

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        """Set repeat mode."""
        self._repeat_mode = mode
        logger.info(f"Repeat mode: {mode.value}")

    def cycle_repeat_mode(self) -> RepeatMode:
        """Advance to the next repeat mode and return it."""
        self.set_repeat_mode(self._repeat_mode.next())
        return self._repeat_mode

    # =========================================================================
    # Navigation
    # =========================================================================

    def current_track(self) -> Optional[Track]:
        """Get the current track."""
        if not self._order:
            return None
        return self._order[self._cursor]

    def upcoming(self) -> list[Track]:
        """Tracks after the cursor in play order."""
        return self._order[self._cursor + 1 :]

    def advance(self) -> QueueStep:
        """
        Move to the next track respecting repeat mode.

        Returns:
            RESTART for repeat-one, MOVED when the cursor changed (including
            the wrap for repeat-all), END at the end of the queue
        """
        if not self._order:
            return QueueStep.END

        if self._repeat_mode == RepeatMode.ONE:
            return QueueStep.RESTART

        if self._cursor < len(self._order) - 1:
            self._cursor += 1
        elif self._repeat_mode == RepeatMode.ALL:
            self._cursor = 0
            logger.info("Queue wrapped to beginning (repeat all)")
        else:
            logger.info("End of queue reached")
            return QueueStep.END

        logger.debug(f"Advanced to index {self._cursor}")
        return QueueStep.MOVED

    def retreat(
        self,
        elapsed_seconds: float,
        threshold: float = RESTART_THRESHOLD_SECONDS,
    ) -> QueueStep:
        """
        Move to the previous track, or ask for a restart.

        Args:
            elapsed_seconds: Playback position of the current track
            threshold: Past this position the current track restarts instead

        Returns:
            RESTART or MOVED (END only for an empty queue)
        """
        if not self._order:
            return QueueStep.END

        if elapsed_seconds > threshold:
            return QueueStep.RESTART

        if self._cursor > 0:
            self._cursor -= 1
        elif self._repeat_mode == RepeatMode.ALL:
            self._cursor = len(self._order) - 1
            logger.info("Queue wrapped to end (repeat all)")
        else:
            return QueueStep.RESTART

        logger.debug(f"Went back to index {self._cursor}")
        return QueueStep.MOVED

    # =========================================================================
    # State Access
    # =========================================================================

    def snapshot(self) -> QueueSnapshot:
        """Get current queue state snapshot."""
        return QueueSnapshot(
            tracks=tuple(self._order),
            cursor=self._cursor,
            shuffled=self._shuffled,
            repeat_mode=self._repeat_mode,
        )

    def restore(
        self,
        tracks: Iterable[Track],
        original_ids: Optional[Iterable[str]] = None,
        current_id: Optional[str] = None,
        shuffled: bool = False,
        repeat_mode: RepeatMode = RepeatMode.NONE,
    ) -> None:
        """
        Replace the queue with persisted state without reshuffling.

        Args:
            tracks: Tracks in play order (duplicates dropped)
            original_ids: Pre-shuffle order as track IDs (used when shuffled)
            current_id: Track ID to put the cursor on (falls back to 0)
            shuffled: Whether the play order is a shuffled one
            repeat_mode: Repeat mode to apply
        """
        self._order = []
        seen: set[str] = set()
        for track in tracks:
            if track.track_id in seen:
                continue
            seen.add(track.track_id)
            self._order.append(track)

        self._original_order = list(self._order)
        if shuffled and original_ids is not None:
            by_id = {t.track_id: t for t in self._order}
            original = [by_id[i] for i in dict.fromkeys(original_ids) if i in by_id]
            placed = {t.track_id for t in original}
            original.extend(t for t in self._order if t.track_id not in placed)
            self._original_order = original

        self._shuffled = shuffled
        self._repeat_mode = repeat_mode

        self._cursor = 0
        if current_id is not None:
            index = self.index_of(current_id)
            if index is not None:
                self._cursor = index

        logger.info(
            f"Restored queue: {len(self._order)} tracks, "
            f"current index {self._cursor}, shuffle {shuffled}, repeat {repeat_mode.value}"
        )
