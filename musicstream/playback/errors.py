"""
Playback error types.

User-facing errors are converted to notifications by the transport;
StaleCompletionError never leaves it.
"""


class PlayerError(Exception):
    """Base class for player core errors."""

    pass


class OutOfRangeError(PlayerError, IndexError):
    """Raised for an invalid queue index."""

    def __init__(self, index: int, length: int):
        super().__init__(f"Queue index {index} out of range (length {length})")
        self.index = index
        self.length = length


class NoActiveTrackError(PlayerError):
    """Raised when an operation requires a current track."""

    pass


class PlaybackError(PlayerError):
    """Media resource missing, unsupported, or rejected by the media element."""

    pass


class StaleCompletionError(PlayerError):
    """A load completed after a newer load superseded it."""

    def __init__(self, sequence: int, latest: int):
        super().__init__(f"Load #{sequence} superseded by load #{latest}")
        self.sequence = sequence
        self.latest = latest
