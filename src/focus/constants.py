"""Phase, status, action, and reason constants used by the focus engine."""

from __future__ import annotations

DEFAULT_FOCUS_MINUTES = 25
DEFAULT_SHORT_BREAK_MINUTES = 5
DEFAULT_LONG_BREAK_MINUTES = 15
SESSIONS_BEFORE_LONG_BREAK = 4
TICK_INTERVAL_SECONDS = 1.0

PHASE_FOCUS = "focus"
PHASE_SHORT_BREAK = "short_break"
PHASE_LONG_BREAK = "long_break"

PHASES: tuple[str, ...] = (PHASE_FOCUS, PHASE_SHORT_BREAK, PHASE_LONG_BREAK)
BREAK_PHASES: frozenset[str] = frozenset({PHASE_SHORT_BREAK, PHASE_LONG_BREAK})

PHASE_LABELS: dict[str, str] = {
    PHASE_FOCUS: "Focus",
    PHASE_SHORT_BREAK: "Short Break",
    PHASE_LONG_BREAK: "Long Break",
}

STATUS_IDLE = "idle"
STATUS_RUNNING = "running"
STATUS_PAUSED = "paused"
STATUS_AWAITING_TRANSITION = "awaiting_transition"

ACTION_START_FOCUS = "start_focus"
ACTION_START_STANDALONE = "start_standalone"
ACTION_PAUSE = "pause"
ACTION_RESUME = "resume"
ACTION_STOP = "stop"
ACTION_SKIP = "skip"
ACTION_RESET = "reset"
ACTION_UPDATE_SETTINGS = "update_settings"

ACTION_SYNC = "sync"
ACTION_TICK = "tick"
ACTION_COMPLETED = "completed"

EVENT_COMMAND = "command"
EVENT_TICK = "tick"
EVENT_PHASE_COMPLETED = "phase_completed"
EVENT_REHYDRATED = "rehydrated"
EVENT_SERVER_SYNC = "server_sync"

REASON_STARTED = "started"
REASON_PAUSED = "paused"
REASON_RESUMED = "resumed"
REASON_STOPPED = "stopped"
REASON_SKIPPED = "skipped"
REASON_RESET = "reset"
REASON_SETTINGS_UPDATED = "settings_updated"
REASON_ALREADY_RUNNING = "already_running"
REASON_SUPERSEDED = "superseded"
REASON_NOT_RUNNING = "not_running"
REASON_NOT_PAUSED = "not_paused"
REASON_NOT_ACTIVE = "not_active"
REASON_NOT_SKIPPABLE = "not_skippable"
REASON_INVALID_PHASE = "invalid_phase"
REASON_INVALID_DURATION = "invalid_duration"
REASON_GATEWAY_UNREACHABLE = "gateway_unreachable"
REASON_GATEWAY_REJECTED = "gateway_rejected"
REASON_UNSUPPORTED_ACTION = "unsupported_action"
REASON_TICK = "tick"
REASON_COMPLETED = "completed"
REASON_STARTUP = "startup"
