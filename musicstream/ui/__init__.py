"""UI sink interfaces and terminal implementations."""

from .sinks import (
    ConsoleRenderer,
    LoggingNotificationSink,
    NotificationLevel,
    NotificationSink,
    NullRenderer,
    ProgressTick,
    UIRenderer,
    format_duration,
)

__all__ = [
    "ConsoleRenderer",
    "LoggingNotificationSink",
    "NotificationLevel",
    "NotificationSink",
    "NullRenderer",
    "ProgressTick",
    "UIRenderer",
    "format_duration",
]
