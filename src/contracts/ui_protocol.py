"""Web UI websocket event and command constants."""

from __future__ import annotations

# Websocket event types
EVENT_HELLO = "hello"
EVENT_FOCUS = "focus"
EVENT_ERROR = "error"

# Client commands
COMMAND_START_FOCUS = "start_focus"
COMMAND_START_STANDALONE = "start_standalone"
COMMAND_PAUSE = "pause"
COMMAND_RESUME = "resume"
COMMAND_STOP = "stop"
COMMAND_SKIP = "skip"
COMMAND_RESET = "reset"
COMMAND_SYNC = "sync"
COMMAND_UPDATE_SETTINGS = "update_settings"

CLIENT_COMMANDS: frozenset[str] = frozenset(
    {
        COMMAND_START_FOCUS,
        COMMAND_START_STANDALONE,
        COMMAND_PAUSE,
        COMMAND_RESUME,
        COMMAND_STOP,
        COMMAND_SKIP,
        COMMAND_RESET,
        COMMAND_SYNC,
        COMMAND_UPDATE_SETTINGS,
    }
)

STICKY_EVENT_TYPES: frozenset[str] = frozenset({EVENT_FOCUS, EVENT_ERROR})

STICKY_EVENT_ORDER: tuple[str, ...] = (
    EVENT_FOCUS,
    EVENT_ERROR,
)
