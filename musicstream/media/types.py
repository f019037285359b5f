"""
Media element types.
"""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class MediaMetadata:
    """
    Track information handed to the media element on load.

    Real elements learn the duration from the stream; the headless element
    relies on the duration given here.
    """

    track_id: str
    title: str = ""
    artist: str = ""
    album: str = ""
    duration: float = 0.0
    artwork_url: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "track_id": self.track_id,
            "title": self.title,
            "artist": self.artist,
            "album": self.album,
            "duration": self.duration,
            "artwork_url": self.artwork_url,
        }


@dataclass
class MediaInfo:
    """Information about a media element implementation."""

    element_type: str  # 'headless', ...
    name: str

    def __str__(self) -> str:
        return f"{self.name} ({self.element_type})"
