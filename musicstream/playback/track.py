"""
Track model.

Backend song payloads are validated once, here, and turned into immutable
Track objects shared by reference between the library, queue and transport.
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Unknown Title"
UNKNOWN_ARTIST = "Unknown Artist"


class TrackValidationError(ValueError):
    """Raised when a backend payload cannot be turned into a Track."""

    pass


@dataclass(frozen=True)
class ArtistRef:
    """Artist reference as embedded in a song payload."""

    artist_id: Optional[str] = None
    name: str = ""

    @classmethod
    def from_api(cls, data: Any) -> Optional["ArtistRef"]:
        if not isinstance(data, dict):
            return None
        artist_id = data.get("artistID")
        return cls(
            artist_id=str(artist_id) if artist_id is not None else None,
            name=str(data.get("name") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"artistID": self.artist_id, "name": self.name}


@dataclass(frozen=True)
class AlbumRef:
    """Album reference as embedded in a song payload."""

    album_id: Optional[str] = None
    title: str = ""
    cover_image: Optional[str] = None

    @classmethod
    def from_api(cls, data: Any) -> Optional["AlbumRef"]:
        if not isinstance(data, dict):
            return None
        album_id = data.get("albumID")
        return cls(
            album_id=str(album_id) if album_id is not None else None,
            title=str(data.get("title") or ""),
            cover_image=data.get("coverImage") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "albumID": self.album_id,
            "title": self.title,
            "coverImage": self.cover_image,
        }


@dataclass(frozen=True)
class Track:
    """
    A playable song.

    Attributes:
        track_id: Backend song ID (stable, unique within a queue)
        title: Song title
        artist: Optional artist reference
        album: Optional album reference
        duration: Duration in seconds (non-negative)
        audio_url: Audio resource locator; None means unplayable
    """

    track_id: str
    title: str = UNKNOWN_TITLE
    artist: Optional[ArtistRef] = None
    album: Optional[AlbumRef] = None
    duration: float = 0.0
    audio_url: Optional[str] = None

    @property
    def is_playable(self) -> bool:
        return bool(self.audio_url)

    @property
    def artist_name(self) -> str:
        if self.artist and self.artist.name:
            return self.artist.name
        return UNKNOWN_ARTIST

    @property
    def cover_image(self) -> Optional[str]:
        return self.album.cover_image if self.album else None

    def __str__(self) -> str:
        return f"{self.artist_name} - {self.title}"

    @classmethod
    def from_api(cls, data: Any) -> "Track":
        """
        Build a Track from a backend song payload.

        Raises:
            TrackValidationError: If the payload is not a dict or has no songID
        """
        if not isinstance(data, dict):
            raise TrackValidationError(f"Song payload must be an object, got {type(data).__name__}")

        song_id = data.get("songID")
        if song_id is None or str(song_id).strip() == "":
            raise TrackValidationError("Song payload is missing songID")

        return cls(
            track_id=str(song_id),
            title=str(data.get("title") or UNKNOWN_TITLE),
            artist=ArtistRef.from_api(data.get("artist")),
            album=AlbumRef.from_api(data.get("album")),
            duration=_parse_duration(data.get("duration")),
            audio_url=data.get("audioFile") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the backend payload shape."""
        return {
            "songID": self.track_id,
            "title": self.title,
            "artist": self.artist.to_dict() if self.artist else None,
            "album": self.album.to_dict() if self.album else None,
            "duration": self.duration,
            "audioFile": self.audio_url,
        }


def _parse_duration(value: Any) -> float:
    """Coerce a duration to non-negative seconds (0 when unusable)."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Ignoring invalid duration: {value!r}")
        return 0.0
    if math.isnan(seconds) or math.isinf(seconds) or seconds < 0:
        return 0.0
    return seconds
