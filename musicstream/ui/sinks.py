"""
UI sinks.

The player core only pushes to these: queue snapshots, track changes,
transport state, progress ticks and user-facing notifications.
"""

import logging
import math
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, TextIO

if TYPE_CHECKING:
    from musicstream.playback.queue import QueueSnapshot
    from musicstream.playback.track import Track
    from musicstream.playback.transport import TransportState

logger = logging.getLogger(__name__)


class NotificationLevel(Enum):
    """Notification severity (maps to toast colors in a browser UI)."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ProgressTick:
    """Playback progress for the current track."""

    position: float
    duration: float

    @property
    def percent(self) -> float:
        if self.duration <= 0:
            return 0.0
        return min(100.0, max(0.0, self.position / self.duration * 100))


def format_duration(seconds: Optional[float]) -> str:
    """Format seconds as m:ss ("0:00" for missing values)."""
    if seconds is None or not isinstance(seconds, (int, float)):
        return "0:00"
    if math.isnan(seconds) or math.isinf(seconds) or seconds <= 0:
        return "0:00"
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


class NotificationSink(ABC):
    """Receives user-facing messages."""

    @abstractmethod
    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        pass


class UIRenderer(ABC):
    """Receives state to display. Return values are never consumed."""

    @abstractmethod
    def render_queue(self, snapshot: "QueueSnapshot") -> None:
        pass

    @abstractmethod
    def render_track(self, track: Optional["Track"]) -> None:
        pass

    @abstractmethod
    def render_state(self, state: "TransportState") -> None:
        pass

    @abstractmethod
    def render_progress(self, tick: ProgressTick) -> None:
        pass

    def render_volume(self, volume: float) -> None:
        """Volume changed (0.0 means muted)."""


class LoggingNotificationSink(NotificationSink):
    """Sends notifications to the log."""

    _LEVELS = {
        NotificationLevel.INFO: logging.INFO,
        NotificationLevel.SUCCESS: logging.INFO,
        NotificationLevel.WARNING: logging.WARNING,
        NotificationLevel.ERROR: logging.ERROR,
    }

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        logger.log(self._LEVELS[level], message)


class NullRenderer(UIRenderer):
    """Discards everything."""

    def render_queue(self, snapshot: "QueueSnapshot") -> None:
        pass

    def render_track(self, track: Optional["Track"]) -> None:
        pass

    def render_state(self, state: "TransportState") -> None:
        pass

    def render_progress(self, tick: ProgressTick) -> None:
        pass


class ConsoleRenderer(UIRenderer, NotificationSink):
    """Plain-text renderer for terminal sessions."""

    def __init__(self, stream: Optional[TextIO] = None, show_progress: bool = False):
        self.stream = stream or sys.stdout
        self.show_progress = show_progress

    def _write(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def notify(self, message: str, level: NotificationLevel = NotificationLevel.INFO) -> None:
        self._write(f"[{level.value}] {message}")

    def render_queue(self, snapshot: "QueueSnapshot") -> None:
        if not snapshot.tracks:
            self._write("Queue is empty")
            return
        flags = f"shuffle={'on' if snapshot.shuffled else 'off'} repeat={snapshot.repeat_mode.value}"
        self._write(f"Queue ({len(snapshot.tracks)} tracks, {flags}):")
        for i, track in enumerate(snapshot.tracks):
            marker = ">" if i == snapshot.cursor else " "
            self._write(f" {marker} {i:>3}. {track} [{format_duration(track.duration)}]")

    def render_track(self, track: Optional["Track"]) -> None:
        if track is None:
            self._write("Now playing: nothing")
        else:
            self._write(f"Now playing: {track}")

    def render_state(self, state: "TransportState") -> None:
        self._write(f"State: {state.value}")

    def render_volume(self, volume: float) -> None:
        self._write("Volume: muted" if volume == 0 else f"Volume: {volume * 100:.0f}%")

    def render_progress(self, tick: ProgressTick) -> None:
        if self.show_progress:
            self._write(
                f"{format_duration(tick.position)} / {format_duration(tick.duration)} "
                f"({tick.percent:.0f}%)"
            )
