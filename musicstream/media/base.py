"""
Abstract media element interface.

Defines the contract the transport drives: load/play/pause/seek/volume
commands plus loadedmetadata, timeupdate, ended and error events.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from .types import MediaInfo, MediaMetadata

logger = logging.getLogger(__name__)

# Event callback types
LoadedMetadataCallback = Callable[[float], None]  # duration (seconds)
TimeUpdateCallback = Callable[[float], None]  # current_time (seconds)
EndedCallback = Callable[[], None]
ErrorCallback = Callable[[str], None]  # error_message


class MediaPlaybackError(Exception):
    """Raised when the media element rejects a command (e.g. play)."""

    pass


class MediaElement(ABC):
    """
    Abstract base class for media elements.

    Implementations must provide the abstract commands and getters; event
    emission goes through the _notify_* helpers so that a failing listener
    never breaks the element.
    """

    def __init__(self, name: str = "MediaElement"):
        """Initialize element."""
        self.name = name

        # Event callbacks
        self._on_loaded_metadata: Optional[LoadedMetadataCallback] = None
        self._on_time_update: Optional[TimeUpdateCallback] = None
        self._on_ended: Optional[EndedCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    # =========================================================================
    # Playback Control - Required
    # =========================================================================

    @abstractmethod
    async def load(self, url: str, metadata: Optional[MediaMetadata] = None) -> None:
        """Set the source; position resets to 0 and the element is paused."""
        pass

    @abstractmethod
    async def play(self) -> None:
        """
        Start or resume playback.

        Raises:
            MediaPlaybackError: If playback is rejected
        """
        pass

    @abstractmethod
    async def pause(self) -> None:
        """Pause playback, keeping the position."""
        pass

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        """Set the playback position."""
        pass

    # =========================================================================
    # State - Required
    # =========================================================================

    @abstractmethod
    async def get_current_time(self) -> float:
        """Get current playback position in seconds."""
        pass

    @abstractmethod
    async def get_duration(self) -> float:
        """Get duration of the loaded source in seconds (0 if unknown)."""
        pass

    @abstractmethod
    def is_paused(self) -> bool:
        """Check if the element is paused (or has nothing loaded)."""
        pass

    # =========================================================================
    # Volume Control - Required
    # =========================================================================

    @abstractmethod
    async def set_volume(self, level: float) -> None:
        """Set playback volume (0.0-1.0)."""
        pass

    @abstractmethod
    async def get_volume(self) -> float:
        """Get current volume level (0.0-1.0)."""
        pass

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def close(self) -> None:
        """Release resources. Default does nothing."""
        pass

    # =========================================================================
    # Event Callbacks
    # =========================================================================

    def on_loaded_metadata(self, callback: Optional[LoadedMetadataCallback]) -> None:
        """Register callback for metadata (duration) becoming available."""
        self._on_loaded_metadata = callback

    def on_time_update(self, callback: Optional[TimeUpdateCallback]) -> None:
        """Register callback for position updates."""
        self._on_time_update = callback

    def on_ended(self, callback: Optional[EndedCallback]) -> None:
        """Register callback for natural end of the source (not pause)."""
        self._on_ended = callback

    def on_error(self, callback: Optional[ErrorCallback]) -> None:
        """Register callback for media errors."""
        self._on_error = callback

    # =========================================================================
    # Event Notification Helpers
    # =========================================================================

    def _notify_loaded_metadata(self, duration: float) -> None:
        if self._on_loaded_metadata:
            try:
                self._on_loaded_metadata(duration)
            except Exception as e:
                logger.error(f"Loaded metadata callback error: {e}")

    def _notify_time_update(self, current_time: float) -> None:
        if self._on_time_update:
            try:
                self._on_time_update(current_time)
            except Exception as e:
                logger.error(f"Time update callback error: {e}")

    def _notify_ended(self) -> None:
        if self._on_ended:
            try:
                self._on_ended()
            except Exception as e:
                logger.error(f"Ended callback error: {e}")

    def _notify_error(self, message: str) -> None:
        if self._on_error:
            try:
                self._on_error(message)
            except Exception as e:
                logger.error(f"Error callback error: {e}")

    # =========================================================================
    # Info
    # =========================================================================

    def get_info(self) -> MediaInfo:
        """Get information about this element."""
        return MediaInfo(element_type="unknown", name=self.name)
