"""JSON encoding of timer snapshots (format version 1)."""

from __future__ import annotations

import json
from typing import Any, Mapping, Optional

from focus.constants import PHASES
from focus.state import TimerStateSnapshot

from .errors import PersistenceCorrupt

SNAPSHOT_FORMAT_VERSION = 1


def snapshot_to_dict(snapshot: TimerStateSnapshot) -> dict[str, Any]:
    return {
        "version": SNAPSHOT_FORMAT_VERSION,
        "phase": snapshot.phase,
        "remaining_seconds": snapshot.remaining_seconds,
        "target_duration_seconds": snapshot.target_duration_seconds,
        "is_running": snapshot.is_running,
        "is_paused": snapshot.is_paused,
        "awaiting_transition": snapshot.awaiting_transition,
        "completed_focus_count": snapshot.completed_focus_count,
        "linked_context_id": snapshot.linked_context_id,
        "context_label": snapshot.context_label,
        "server_session_id": snapshot.server_session_id,
        "last_persisted_at_epoch_ms": snapshot.last_persisted_at_epoch_ms,
        "ended_session_id": snapshot.ended_session_id,
        "ended_session_completed": snapshot.ended_session_completed,
    }


def snapshot_from_dict(raw: Any) -> TimerStateSnapshot:
    """Validate a decoded JSON object and build a snapshot from it."""
    if not isinstance(raw, Mapping):
        raise PersistenceCorrupt("Snapshot root must be a JSON object")

    version = raw.get("version")
    if version != SNAPSHOT_FORMAT_VERSION:
        raise PersistenceCorrupt(f"Unsupported snapshot version: {version!r}")

    phase = raw.get("phase")
    if phase not in PHASES:
        raise PersistenceCorrupt(f"Unknown phase in snapshot: {phase!r}")

    return TimerStateSnapshot(
        phase=phase,
        remaining_seconds=_non_negative_int(raw, "remaining_seconds"),
        target_duration_seconds=_non_negative_int(raw, "target_duration_seconds"),
        is_running=_bool(raw, "is_running"),
        is_paused=_bool(raw, "is_paused"),
        awaiting_transition=_bool(raw, "awaiting_transition", default=False),
        completed_focus_count=_non_negative_int(raw, "completed_focus_count"),
        linked_context_id=_optional_str(raw, "linked_context_id"),
        context_label=_optional_str(raw, "context_label"),
        server_session_id=_optional_str(raw, "server_session_id"),
        last_persisted_at_epoch_ms=_non_negative_int(raw, "last_persisted_at_epoch_ms"),
        ended_session_id=_optional_str(raw, "ended_session_id"),
        ended_session_completed=_bool(raw, "ended_session_completed", default=False),
    )


def encode_snapshot(snapshot: TimerStateSnapshot) -> str:
    return json.dumps(snapshot_to_dict(snapshot), indent=2, sort_keys=True)


def decode_snapshot(text: str) -> TimerStateSnapshot:
    try:
        raw = json.loads(text)
    except (ValueError, RecursionError) as error:
        raise PersistenceCorrupt(f"Snapshot is not valid JSON: {error}") from error
    return snapshot_from_dict(raw)


def _non_negative_int(raw: Mapping[str, Any], field: str) -> int:
    value = raw.get(field)
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise PersistenceCorrupt(f"{field} must be a non-negative integer")
    return value


def _bool(raw: Mapping[str, Any], field: str, *, default: Optional[bool] = None) -> bool:
    value = raw.get(field, default)
    if not isinstance(value, bool):
        raise PersistenceCorrupt(f"{field} must be a boolean")
    return value


def _optional_str(raw: Mapping[str, Any], field: str) -> Optional[str]:
    value = raw.get(field)
    if value is None:
        return None
    if not isinstance(value, str):
        raise PersistenceCorrupt(f"{field} must be a string or null")
    return value or None
