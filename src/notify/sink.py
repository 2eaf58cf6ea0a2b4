"""Phase completion announcements: chime plus optional desktop notification."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import numpy as np

from .chime import DEFAULT_SAMPLE_RATE_HZ, chime_frequency, synthesize_chime
from .messages import phase_complete_message


class AudioOutputLike(Protocol):
    def play(self, wav: np.ndarray, sample_rate_hz: int, blocking: bool = False) -> None:
        ...


class DesktopNotifierLike(Protocol):
    def notify(self, title: str, body: str) -> None:
        ...


class PhaseNotificationSink:
    """Best-effort notifier; failures are logged and never propagate."""

    def __init__(
        self,
        *,
        audio_output: Optional[AudioOutputLike] = None,
        desktop_notifier: Optional[DesktopNotifierLike] = None,
        sound_enabled: bool = True,
        volume: float = 0.3,
        sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
        logger: Optional[logging.Logger] = None,
    ):
        self._audio_output = audio_output
        self._desktop_notifier = desktop_notifier
        self._sound_enabled = sound_enabled
        self._volume = volume
        self._sample_rate_hz = sample_rate_hz
        self._logger = logger or logging.getLogger("notify")

    @property
    def sound_enabled(self) -> bool:
        return self._sound_enabled

    def set_sound_enabled(self, enabled: bool) -> None:
        self._sound_enabled = bool(enabled)

    def announce_phase_complete(self, phase: str) -> None:
        if self._sound_enabled and self._audio_output is not None:
            try:
                wav = synthesize_chime(
                    chime_frequency(phase),
                    volume=self._volume,
                    sample_rate_hz=self._sample_rate_hz,
                )
                self._audio_output.play(wav, self._sample_rate_hz, blocking=False)
            except Exception as error:
                self._logger.warning("Chime playback failed: %s", error)

        if self._desktop_notifier is not None:
            title, body = phase_complete_message(phase)
            try:
                self._desktop_notifier.notify(title, body)
            except Exception as error:
                self._logger.warning("Desktop notification failed: %s", error)


class NullNotificationSink:
    def announce_phase_complete(self, phase: str) -> None:
        del phase
