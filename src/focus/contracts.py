"""Protocols and value types for the collaborators the focus engine consumes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

from .state import TimerStateSnapshot


@dataclass(frozen=True)
class SessionHandle:
    """Server acknowledgement of a started focus session."""
    id: str
    started_at: datetime


@dataclass(frozen=True)
class ActiveSession:
    """Server-held session that has not been ended yet."""
    id: str
    started_at: datetime
    target_duration_seconds: Optional[int] = None
    context_id: Optional[str] = None
    context_label: Optional[str] = None


class SessionGatewayLike(Protocol):
    """Remote authority for focus session records; may be unreachable."""
    async def start_focus_session(
        self,
        context_id: Optional[str],
        duration_seconds: int,
    ) -> SessionHandle:
        ...

    async def end_session(
        self,
        session_id: str,
        completed: bool,
        interrupted: bool,
    ) -> None:
        ...

    async def get_active_session(self) -> Optional[ActiveSession]:
        ...


class EndSessionSinkLike(Protocol):
    """Fire-and-forget channel for reporting ended sessions."""
    def submit(self, session_id: str, *, completed: bool, interrupted: bool) -> None:
        ...

    async def drain(self, timeout_seconds: float = 5.0) -> None:
        ...


class SnapshotStoreLike(Protocol):
    """Device-scoped snapshot storage; writes complete before returning."""
    def save(self, snapshot: TimerStateSnapshot) -> None:
        ...

    def load(self) -> Optional[TimerStateSnapshot]:
        ...

    def clear(self) -> None:
        ...


class NotificationSinkLike(Protocol):
    """Best-effort phase completion announcement."""
    def announce_phase_complete(self, phase: str) -> None:
        ...
