"""Sine chime synthesis for phase completion."""

from __future__ import annotations

import numpy as np

from focus.constants import PHASE_FOCUS

FOCUS_CHIME_HZ = 800.0
BREAK_CHIME_HZ = 600.0
CHIME_SECONDS = 0.5
CHIME_FLOOR_GAIN = 0.01
DEFAULT_SAMPLE_RATE_HZ = 44100


def chime_frequency(phase: str) -> float:
    return FOCUS_CHIME_HZ if phase == PHASE_FOCUS else BREAK_CHIME_HZ


def synthesize_chime(
    frequency_hz: float,
    *,
    volume: float = 0.3,
    duration_seconds: float = CHIME_SECONDS,
    sample_rate_hz: int = DEFAULT_SAMPLE_RATE_HZ,
) -> np.ndarray:
    """Return a mono float32 sine tone whose gain decays exponentially to ~0.01."""
    if frequency_hz <= 0:
        raise ValueError("frequency_hz must be > 0")
    if duration_seconds <= 0:
        raise ValueError("duration_seconds must be > 0")

    volume = float(np.clip(volume, 0.0, 1.0))
    samples = max(1, int(round(duration_seconds * sample_rate_hz)))
    t = np.arange(samples, dtype=np.float64) / sample_rate_hz
    if volume > CHIME_FLOOR_GAIN:
        envelope = volume * np.power(CHIME_FLOOR_GAIN / volume, t / duration_seconds)
    else:
        envelope = np.full(samples, volume)
    tone = np.sin(2.0 * np.pi * frequency_hz * t) * envelope
    return tone.astype(np.float32)
