"""
Headless media element.

Plays nothing audible: it keeps a position clock for the loaded source and
emits the same events a real element would (timeupdate ticks, ended when the
clock reaches the duration). Used for terminal sessions and tests.
"""

import asyncio
import logging
import time
from typing import Callable, Optional

from .base import MediaElement, MediaPlaybackError
from .types import MediaInfo, MediaMetadata

logger = logging.getLogger(__name__)

# Interval between timeupdate events while playing (seconds)
TICK_INTERVAL_SECONDS = 0.25


class HeadlessMediaElement(MediaElement):
    """
    Clock-driven media element.

    Position while playing = position at last resume + time elapsed since.
    """

    def __init__(
        self,
        name: str = "Headless",
        clock: Callable[[], float] = time.monotonic,
        tick_interval: float = TICK_INTERVAL_SECONDS,
    ):
        super().__init__(name=name)
        self._clock = clock
        self._tick_interval = tick_interval

        self._url: Optional[str] = None
        self._metadata: Optional[MediaMetadata] = None
        self._duration: float = 0.0
        self._volume: float = 1.0

        # Position tracking
        self._position: float = 0.0
        self._started_at: float = 0.0
        self._paused: bool = True

        self._tick_task: Optional[asyncio.Task] = None

    # =========================================================================
    # Playback Control
    # =========================================================================

    async def load(self, url: str, metadata: Optional[MediaMetadata] = None) -> None:
        await self._stop_ticker()

        self._url = url or None
        self._metadata = metadata
        self._duration = max(0.0, metadata.duration) if metadata else 0.0
        self._position = 0.0
        self._paused = True

        if not self._url:
            self._notify_error("Empty media source")
            return

        logger.debug(f"Loaded {self._url} ({self._duration:.1f}s)")
        self._notify_loaded_metadata(self._duration)

    async def play(self) -> None:
        if not self._url:
            raise MediaPlaybackError("No media source loaded")

        if not self._paused:
            return

        # Playing an ended source starts it over
        if self._duration > 0 and self._position >= self._duration:
            self._position = 0.0

        self._started_at = self._clock()
        self._paused = False
        self._tick_task = asyncio.create_task(self._tick_loop())
        logger.debug(f"Playing from {self._position:.1f}s")

    async def pause(self) -> None:
        if self._paused:
            return
        self._position = self._current_position()
        self._paused = True
        await self._stop_ticker()
        logger.debug(f"Paused at {self._position:.1f}s")

    async def seek(self, seconds: float) -> None:
        position = max(0.0, seconds)
        if self._duration > 0:
            position = min(position, self._duration)
        self._position = position
        if not self._paused:
            self._started_at = self._clock()
        self._notify_time_update(position)

    # =========================================================================
    # State
    # =========================================================================

    async def get_current_time(self) -> float:
        return self._current_position()

    async def get_duration(self) -> float:
        return self._duration

    def is_paused(self) -> bool:
        return self._paused

    @property
    def source(self) -> Optional[str]:
        return self._url

    @property
    def metadata(self) -> Optional[MediaMetadata]:
        return self._metadata

    def _current_position(self) -> float:
        if self._paused:
            return self._position
        position = self._position + (self._clock() - self._started_at)
        if self._duration > 0:
            position = min(position, self._duration)
        return position

    # =========================================================================
    # Volume Control
    # =========================================================================

    async def set_volume(self, level: float) -> None:
        self._volume = max(0.0, min(1.0, level))

    async def get_volume(self) -> float:
        return self._volume

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        self._paused = True
        await self._stop_ticker()

    def get_info(self) -> MediaInfo:
        return MediaInfo(element_type="headless", name=self.name)

    # =========================================================================
    # Clock
    # =========================================================================

    async def _tick_loop(self) -> None:
        """Emit timeupdate until paused, and ended at the end of the source."""
        while not self._paused:
            try:
                await asyncio.sleep(self._tick_interval)
            except asyncio.CancelledError:
                break

            position = self._current_position()
            self._notify_time_update(position)

            if self._duration > 0 and position >= self._duration:
                self._position = self._duration
                self._paused = True
                self._tick_task = None
                logger.debug("Source ended")
                self._notify_ended()
                break

    async def _stop_ticker(self) -> None:
        task = self._tick_task
        self._tick_task = None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
