"""Collaborators the playback engine talks to: notifications and keep-alive."""

from .keepalive import (
    BackgroundKeepAlivePort,
    CaffeinateKeepAlive,
    NullKeepAlive,
    keepalive_for_platform,
)
from .notifications import NotificationPort, QtScheduledNotifier, notification_key

__all__ = [
    "BackgroundKeepAlivePort",
    "CaffeinateKeepAlive",
    "NullKeepAlive",
    "keepalive_for_platform",
    "NotificationPort",
    "QtScheduledNotifier",
    "notification_key",
]
