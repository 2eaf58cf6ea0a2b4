"""Desktop notifications through the freedesktop `notify-send` tool."""

from __future__ import annotations

import logging
import shutil
import subprocess
from typing import Callable, Optional

from .errors import NotificationDependencyError, NotificationError

NOTIFY_SEND = "notify-send"


def notification_command(title: str, body: str) -> list[str]:
    return [NOTIFY_SEND, "-u", "normal", "-a", "Focus", title, body]


class DesktopNotifier:
    """Spawns `notify-send` without waiting for it; runs on the event loop thread."""

    def __init__(
        self,
        *,
        which: Callable[[str], Optional[str]] = shutil.which,
        spawn: Callable[..., subprocess.Popen] = subprocess.Popen,
        logger: Optional[logging.Logger] = None,
    ):
        self._which = which
        self._spawn = spawn
        self._logger = logger or logging.getLogger(__name__)

    @property
    def available(self) -> bool:
        return self._which(NOTIFY_SEND) is not None

    def notify(self, title: str, body: str) -> None:
        if not self.available:
            raise NotificationDependencyError(f"{NOTIFY_SEND} not found on PATH")
        try:
            self._spawn(
                notification_command(title, body),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except (OSError, subprocess.SubprocessError) as error:
            raise NotificationError(f"{NOTIFY_SEND} failed: {error}") from error
        self._logger.debug("Desktop notification sent: %s", title)
