"""Playback queue and transport module."""

from .errors import (
    NoActiveTrackError,
    OutOfRangeError,
    PlaybackError,
    PlayerError,
    StaleCompletionError,
)
from .track import AlbumRef, ArtistRef, Track, TrackValidationError
from .queue import (
    PlaybackQueue,
    QueueSnapshot,
    QueueStep,
    RepeatMode,
)
from .persistence import PersistedPlayerState, PlayerStateStore
from .transport import TransportController, TransportSnapshot, TransportState
from .command_handler import KEY_BINDINGS, Command, PlayerCommandHandler
from .progress import ProgressReporter

__all__ = [
    # Errors
    "NoActiveTrackError",
    "OutOfRangeError",
    "PlaybackError",
    "PlayerError",
    "StaleCompletionError",
    # Tracks
    "AlbumRef",
    "ArtistRef",
    "Track",
    "TrackValidationError",
    # Queue
    "PlaybackQueue",
    "QueueSnapshot",
    "QueueStep",
    "RepeatMode",
    # Persistence
    "PersistedPlayerState",
    "PlayerStateStore",
    # Transport
    "TransportController",
    "TransportSnapshot",
    "TransportState",
    "Command",
    "KEY_BINDINGS",
    "PlayerCommandHandler",
    "ProgressReporter",
]
