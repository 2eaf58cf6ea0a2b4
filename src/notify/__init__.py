"""Phase completion notifications."""

from .desktop import DesktopNotifier
from .errors import (
    NotificationDependencyError,
    NotificationError,
    NotificationPlaybackError,
)
from .output import SoundDeviceAudioOutput
from .sink import NullNotificationSink, PhaseNotificationSink

__all__ = [
    "DesktopNotifier",
    "NotificationDependencyError",
    "NotificationError",
    "NotificationPlaybackError",
    "NullNotificationSink",
    "PhaseNotificationSink",
    "SoundDeviceAudioOutput",
]
