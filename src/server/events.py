"""Utilities for serializing UI events and preserving sticky state."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

from contracts.ui_protocol import STICKY_EVENT_ORDER, STICKY_EVENT_TYPES


def make_event(
    event_type: str,
    *,
    now_fn: Callable[[], datetime] | None = None,
    **payload: Any,
) -> str:
    """Serialize an event payload with type and timestamp for websocket delivery."""
    now = now_fn() if now_fn is not None else datetime.now(timezone.utc)
    return json.dumps(
        {
            "type": event_type,
            "timestamp": now.isoformat(),
            **payload,
        }
    )


def parse_command(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    """Decode a client message into `(command, arguments)`; raises ValueError."""
    try:
        message = json.loads(raw)
    except ValueError as error:
        raise ValueError(f"Command is not valid JSON: {error}") from error
    if not isinstance(message, dict):
        raise ValueError("Command must be a JSON object")
    command = message.get("command")
    if not isinstance(command, str) or not command.strip():
        raise ValueError("Command object requires a 'command' string")
    arguments = {key: value for key, value in message.items() if key != "command"}
    return command.strip(), arguments


class StickyEventStore:
    """Latest sticky event per type, replayed to newly connected websocket clients.

    Only touched from the event loop thread.
    """
    def __init__(self):
        self._events: dict[str, str] = {}

    def remember(self, event_type: str, message: str) -> None:
        if event_type not in STICKY_EVENT_TYPES:
            return
        self._events[event_type] = message

    def forget(self, event_type: str) -> None:
        self._events.pop(event_type, None)

    def snapshot(self) -> list[str]:
        return [self._events[key] for key in STICKY_EVENT_ORDER if key in self._events]
