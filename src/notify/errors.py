class NotificationError(Exception):
    """Base exception for phase completion notifications."""


class NotificationDependencyError(NotificationError):
    """Raised when an optional dependency for a notifier is missing."""


class NotificationPlaybackError(NotificationError):
    """Raised when the chime cannot be played."""
