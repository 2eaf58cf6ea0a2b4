"""Timer state, snapshot, and command result types for the focus engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .constants import (
    BREAK_PHASES,
    PHASE_FOCUS,
    STATUS_AWAITING_TRANSITION,
    STATUS_IDLE,
    STATUS_PAUSED,
    STATUS_RUNNING,
)


@dataclass
class TimerState:
    """Mutable countdown state owned exclusively by one `FocusEngine`."""
    phase: str
    remaining_seconds: int
    target_duration_seconds: int
    is_running: bool = False
    is_paused: bool = False
    awaiting_transition: bool = False
    completed_focus_count: int = 0
    linked_context_id: Optional[str] = None
    context_label: Optional[str] = None
    server_session_id: Optional[str] = None
    ended_session_id: Optional[str] = None
    ended_session_completed: bool = False

    @classmethod
    def idle(
        cls,
        target_duration_seconds: int,
        *,
        completed_focus_count: int = 0,
    ) -> "TimerState":
        return cls(
            phase=PHASE_FOCUS,
            remaining_seconds=target_duration_seconds,
            target_duration_seconds=target_duration_seconds,
            completed_focus_count=completed_focus_count,
        )

    @property
    def status(self) -> str:
        return _status_of(self.is_running, self.is_paused, self.awaiting_transition)

    @property
    def is_break(self) -> bool:
        return self.phase in BREAK_PHASES

    def freeze(self, persisted_at_epoch_ms: int) -> "TimerStateSnapshot":
        return TimerStateSnapshot(
            phase=self.phase,
            remaining_seconds=self.remaining_seconds,
            target_duration_seconds=self.target_duration_seconds,
            is_running=self.is_running,
            is_paused=self.is_paused,
            awaiting_transition=self.awaiting_transition,
            completed_focus_count=self.completed_focus_count,
            linked_context_id=self.linked_context_id,
            context_label=self.context_label,
            server_session_id=self.server_session_id,
            last_persisted_at_epoch_ms=persisted_at_epoch_ms,
            ended_session_id=self.ended_session_id,
            ended_session_completed=self.ended_session_completed,
        )


@dataclass(frozen=True)
class TimerStateSnapshot:
    """Immutable timer snapshot persisted to the store and handed to subscribers."""
    phase: str
    remaining_seconds: int
    target_duration_seconds: int
    is_running: bool
    is_paused: bool
    awaiting_transition: bool
    completed_focus_count: int
    linked_context_id: Optional[str]
    context_label: Optional[str]
    server_session_id: Optional[str]
    last_persisted_at_epoch_ms: int
    ended_session_id: Optional[str] = None
    ended_session_completed: bool = False

    @property
    def status(self) -> str:
        return _status_of(self.is_running, self.is_paused, self.awaiting_transition)

    @property
    def is_active(self) -> bool:
        return self.status != STATUS_IDLE

    @property
    def progress(self) -> float:
        if self.target_duration_seconds <= 0:
            return 0.0
        done = self.target_duration_seconds - self.remaining_seconds
        return max(0.0, min(1.0, done / self.target_duration_seconds))

    def thaw(self) -> TimerState:
        return TimerState(
            phase=self.phase,
            remaining_seconds=self.remaining_seconds,
            target_duration_seconds=self.target_duration_seconds,
            is_running=self.is_running,
            is_paused=self.is_paused,
            awaiting_transition=self.awaiting_transition,
            completed_focus_count=self.completed_focus_count,
            linked_context_id=self.linked_context_id,
            context_label=self.context_label,
            server_session_id=self.server_session_id,
            ended_session_id=self.ended_session_id,
            ended_session_completed=self.ended_session_completed,
        )


@dataclass(frozen=True)
class FocusActionResult:
    """Result envelope returned after applying a focus engine command."""
    action: str
    accepted: bool
    reason: str
    snapshot: TimerStateSnapshot


def _status_of(is_running: bool, is_paused: bool, awaiting_transition: bool) -> str:
    if is_running:
        return STATUS_RUNNING
    if awaiting_transition:
        return STATUS_AWAITING_TRANSITION
    if is_paused:
        return STATUS_PAUSED
    return STATUS_IDLE
