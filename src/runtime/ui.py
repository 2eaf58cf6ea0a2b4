from __future__ import annotations

from typing import Any, Optional, Protocol

from contracts.ui_protocol import EVENT_ERROR, EVENT_FOCUS
from focus import TimerStateSnapshot


class UIServerLike(Protocol):
    def publish(self, event_type: str, **payload: Any) -> None:
        ...


def focus_payload(snapshot: TimerStateSnapshot) -> dict[str, Any]:
    return {
        "phase": snapshot.phase,
        "status": snapshot.status,
        "remaining_seconds": snapshot.remaining_seconds,
        "duration_seconds": snapshot.target_duration_seconds,
        "progress": round(snapshot.progress, 4),
        "completed_focus_count": snapshot.completed_focus_count,
        "context_id": snapshot.linked_context_id,
        "context_label": snapshot.context_label,
        "session_id": snapshot.server_session_id,
    }


class RuntimeUIPublisher:
    def __init__(self, ui_server: Optional[UIServerLike]):
        self._ui_server = ui_server

    def publish(self, event_type: str, **payload: Any) -> None:
        if self._ui_server:
            self._ui_server.publish(event_type, **payload)

    def publish_error(self, message: str, **payload: Any) -> None:
        self.publish(EVENT_ERROR, message=message, **payload)

    def publish_focus_update(
        self,
        snapshot: TimerStateSnapshot,
        *,
        action: str,
        accepted: Optional[bool] = None,
        reason: str = "",
        message: Optional[str] = None,
    ) -> None:
        payload: dict[str, Any] = {"action": action, **focus_payload(snapshot)}
        if accepted is not None:
            payload["accepted"] = accepted
        if reason:
            payload["reason"] = reason
        if message:
            payload["message"] = message
        self.publish(EVENT_FOCUS, **payload)
