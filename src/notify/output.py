"""Sounddevice-backed audio playback for notification chimes."""

import logging
from typing import Optional

import numpy as np

from .errors import NotificationDependencyError, NotificationPlaybackError


class SoundDeviceAudioOutput:
    """Plays mono PCM arrays through a selected sounddevice output."""
    def __init__(
        self,
        output_device_index: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._output_device_index = output_device_index
        self._logger = logger or logging.getLogger(__name__)
        self._sd = None

    def play(self, wav: np.ndarray, sample_rate_hz: int, blocking: bool = False) -> None:
        if wav.ndim != 1:
            raise NotificationPlaybackError("Expected mono PCM array for playback")
        if len(wav) == 0:
            raise NotificationPlaybackError("Cannot play empty audio buffer")

        sd = self._sounddevice()
        try:
            sd.play(
                wav,
                samplerate=sample_rate_hz,
                device=self._output_device_index,
                blocking=blocking,
            )
        except Exception as error:
            raise NotificationPlaybackError(f"Audio playback failed: {error}") from error
        self._logger.debug(
            "Playing %d samples at %d Hz (device=%s)",
            len(wav),
            sample_rate_hz,
            self._output_device_index,
        )

    def _sounddevice(self):
        if self._sd is not None:
            return self._sd
        try:
            import sounddevice as sd
        except (ImportError, OSError) as error:  # pragma: no cover - optional dependency
            raise NotificationDependencyError(
                "Audio output unavailable. Install sounddevice and PortAudio."
            ) from error
        self._sd = sd
        return sd
