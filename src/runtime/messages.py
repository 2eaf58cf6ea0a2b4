"""Status and response text builders for focus updates."""

from __future__ import annotations

from focus import TimerStateSnapshot
from focus.constants import (
    ACTION_COMPLETED,
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_RESUME,
    ACTION_SKIP,
    ACTION_START_FOCUS,
    ACTION_START_STANDALONE,
    ACTION_STOP,
    ACTION_UPDATE_SETTINGS,
    PHASE_FOCUS,
    PHASE_LABELS,
    REASON_ALREADY_RUNNING,
    REASON_GATEWAY_REJECTED,
    REASON_GATEWAY_UNREACHABLE,
    REASON_INVALID_DURATION,
    REASON_INVALID_PHASE,
    REASON_NOT_ACTIVE,
    REASON_NOT_PAUSED,
    REASON_NOT_RUNNING,
    REASON_NOT_SKIPPABLE,
    REASON_SUPERSEDED,
    REASON_UNSUPPORTED_ACTION,
    STATUS_AWAITING_TRANSITION,
    STATUS_PAUSED,
    STATUS_RUNNING,
)


def format_duration(seconds: int) -> str:
    """Format a duration in seconds as `MM:SS`."""
    minutes, remainder = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{remainder:02d}"


def _subject(snapshot: TimerStateSnapshot) -> str:
    label = PHASE_LABELS.get(snapshot.phase, snapshot.phase)
    if snapshot.context_label and snapshot.phase == PHASE_FOCUS:
        return f"{label} '{snapshot.context_label}'"
    return label


def focus_status_message(snapshot: TimerStateSnapshot) -> str:
    """Build status text for the current focus snapshot."""
    remaining = format_duration(snapshot.remaining_seconds)
    if snapshot.status == STATUS_RUNNING:
        return f"{_subject(snapshot)} running ({remaining} remaining)"
    if snapshot.status == STATUS_AWAITING_TRANSITION:
        return f"{PHASE_LABELS.get(snapshot.phase, snapshot.phase)} ready ({remaining})"
    if snapshot.status == STATUS_PAUSED:
        return f"{_subject(snapshot)} paused ({remaining} remaining)"
    return "Ready"


def default_focus_text(action: str, snapshot: TimerStateSnapshot) -> str:
    """Return the confirmation text for an accepted focus action."""
    subject = _subject(snapshot)
    if action in (ACTION_START_FOCUS, ACTION_START_STANDALONE):
        return f"{subject} started for {format_duration(snapshot.target_duration_seconds)}."
    if action == ACTION_PAUSE:
        return f"{subject} paused."
    if action == ACTION_RESUME:
        return f"{subject} resumed."
    if action == ACTION_STOP:
        return "Session stopped."
    if action == ACTION_SKIP:
        return "Break skipped."
    if action == ACTION_RESET:
        return "Focus timer reset."
    if action == ACTION_UPDATE_SETTINGS:
        return "Settings updated."
    if action == ACTION_COMPLETED:
        return focus_status_message(snapshot)
    return "Focus timer updated."


def focus_rejection_text(action: str, reason: str) -> str:
    """Return rejection text for a focus action refused in the current state."""
    if reason == REASON_ALREADY_RUNNING:
        return "A session is already running. Stop it first."
    if reason == REASON_SUPERSEDED:
        return "The start was cancelled by a newer command."
    if reason == REASON_GATEWAY_UNREACHABLE:
        return "The session server is unreachable. Try again shortly."
    if reason == REASON_GATEWAY_REJECTED:
        return "The session server refused to start a session."
    if reason == REASON_INVALID_DURATION:
        return "Durations must be a positive number of minutes."
    if reason == REASON_INVALID_PHASE:
        return "Unknown phase requested."
    if reason == REASON_NOT_RUNNING and action == ACTION_PAUSE:
        return "The timer is not running."
    if reason == REASON_NOT_PAUSED and action == ACTION_RESUME:
        return "The timer is not paused."
    if reason == REASON_NOT_ACTIVE and action == ACTION_STOP:
        return "There is no active session."
    if reason == REASON_NOT_SKIPPABLE and action == ACTION_SKIP:
        return "Only a pending or paused break can be skipped."
    if reason == REASON_UNSUPPORTED_ACTION:
        return f"Unsupported command: {action}."
    return "That action is not possible right now."
