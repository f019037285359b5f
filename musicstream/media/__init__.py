"""
Media element module.

Provides the abstract media element interface and the headless implementation.
"""

from .base import (
    EndedCallback,
    ErrorCallback,
    LoadedMetadataCallback,
    MediaElement,
    MediaPlaybackError,
    TimeUpdateCallback,
)
from .headless import HeadlessMediaElement
from .types import MediaInfo, MediaMetadata

__all__ = [
    # Types
    "MediaInfo",
    "MediaMetadata",
    # Base class
    "MediaElement",
    "MediaPlaybackError",
    # Callback types
    "EndedCallback",
    "ErrorCallback",
    "LoadedMetadataCallback",
    "TimeUpdateCallback",
    # Implementations
    "HeadlessMediaElement",
]
