"""Phase duration policy with the product's defaults and settings ranges."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Mapping, Optional

from .constants import (
    DEFAULT_FOCUS_MINUTES,
    DEFAULT_LONG_BREAK_MINUTES,
    DEFAULT_SHORT_BREAK_MINUTES,
    PHASE_FOCUS,
    PHASE_LONG_BREAK,
    PHASE_SHORT_BREAK,
    SESSIONS_BEFORE_LONG_BREAK,
)

# (default, minimum, maximum) in minutes, matching the settings API bounds.
_PHASE_MINUTES: dict[str, tuple[int, int, int]] = {
    PHASE_FOCUS: (DEFAULT_FOCUS_MINUTES, 1, 120),
    PHASE_SHORT_BREAK: (DEFAULT_SHORT_BREAK_MINUTES, 1, 30),
    PHASE_LONG_BREAK: (DEFAULT_LONG_BREAK_MINUTES, 1, 60),
}

_MAPPING_KEYS: dict[str, tuple[str, ...]] = {
    "focus_minutes": ("focus_minutes", "focusMinutes", "pomodoroFocusDuration"),
    "short_break_minutes": (
        "short_break_minutes",
        "shortBreakMinutes",
        "pomodoroShortBreak",
    ),
    "long_break_minutes": (
        "long_break_minutes",
        "longBreakMinutes",
        "pomodoroLongBreak",
    ),
    "sound_enabled": ("sound_enabled", "soundEnabled"),
}


@dataclass(frozen=True)
class DurationConfig:
    """User duration settings; unset fields fall back to defaults in `resolve`."""
    focus_minutes: Optional[int] = None
    short_break_minutes: Optional[int] = None
    long_break_minutes: Optional[int] = None
    sound_enabled: Optional[bool] = None

    @property
    def plays_sound(self) -> bool:
        if isinstance(self.sound_enabled, bool):
            return self.sound_enabled
        return True

    @classmethod
    def from_mapping(cls, raw: Optional[Mapping[str, Any]]) -> "DurationConfig":
        """Build from a settings payload using snake_case or API camelCase keys."""
        if not raw:
            return cls()
        values: dict[str, Any] = {}
        for field_name, keys in _MAPPING_KEYS.items():
            for key in keys:
                if raw.get(key) is not None:
                    values[field_name] = raw[key]
                    break
        return cls(**values)

    def updated(self, raw: Optional[Mapping[str, Any]]) -> "DurationConfig":
        """Overlay a settings payload; keys it omits keep their current value."""
        changes = DurationConfig.from_mapping(raw)
        values = {
            item.name: getattr(changes, item.name)
            for item in fields(self)
            if getattr(changes, item.name) is not None
        }
        return replace(self, **values)


def resolve(phase: str, config: Optional[DurationConfig] = None) -> int:
    """Return the duration of `phase` in seconds for the given configuration."""
    default, minimum, maximum = _PHASE_MINUTES.get(phase, _PHASE_MINUTES[PHASE_FOCUS])
    raw: Any = None
    if config is not None:
        if phase == PHASE_SHORT_BREAK:
            raw = config.short_break_minutes
        elif phase == PHASE_LONG_BREAK:
            raw = config.long_break_minutes
        else:
            raw = config.focus_minutes

    minutes = _coerce_minutes(raw)
    if minutes is None:
        minutes = default
    return max(minimum, min(maximum, minutes)) * 60


def minutes_to_seconds(duration_minutes: Any, phase: str, config: Optional[DurationConfig]) -> int:
    """Use an explicit per-start duration when valid, otherwise the policy.

    Explicit durations are clamped to the same range as the phase setting.
    """
    minutes = _coerce_minutes(duration_minutes)
    if minutes is None:
        return resolve(phase, config)
    _, minimum, maximum = _PHASE_MINUTES.get(phase, _PHASE_MINUTES[PHASE_FOCUS])
    return max(minimum, min(maximum, minutes)) * 60


def validate_minutes(value: Any) -> Optional[int]:
    """Whole minutes from a client value; raises ValueError for unusable values."""
    if value is None:
        return None
    minutes = _coerce_minutes(value)
    if minutes is None:
        raise ValueError(f"Duration must be a positive number of minutes, got {value!r}")
    return minutes


def next_break_phase(completed_focus_count: int) -> str:
    if completed_focus_count > 0 and completed_focus_count % SESSIONS_BEFORE_LONG_BREAK == 0:
        return PHASE_LONG_BREAK
    return PHASE_SHORT_BREAK


def _coerce_minutes(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    minutes = int(round(value))
    if minutes <= 0:
        return None
    return minutes
