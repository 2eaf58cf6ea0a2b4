"""Rebuild timer state from a persisted snapshot and the elapsed wall-clock gap."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .state import TimerState, TimerStateSnapshot


@dataclass(frozen=True)
class RestoredState:
    """Outcome of rehydration before any phase completion is applied."""
    state: TimerState
    elapsed_seconds: int = 0
    completed_while_away: Optional[str] = None


def elapsed_seconds_since(persisted_at_epoch_ms: int, now_ms: int) -> int:
    """Whole seconds since the snapshot was written; clock skew counts as zero."""
    return max(0, (int(now_ms) - int(persisted_at_epoch_ms)) // 1000)


def restore_state(
    snapshot: Optional[TimerStateSnapshot],
    *,
    now_ms: int,
    idle_duration_seconds: int,
) -> RestoredState:
    """Apply elapsed time to a running snapshot; paused and idle ones are frozen.

    When a running phase ran out while the process was away, the returned
    state sits at zero remaining seconds, not running, and
    `completed_while_away` names the phase so the caller can run the normal
    phase completion for it.
    """
    if snapshot is None:
        return RestoredState(state=TimerState.idle(idle_duration_seconds))

    state = snapshot.thaw()
    state.target_duration_seconds = max(0, state.target_duration_seconds)
    state.remaining_seconds = max(
        0,
        min(state.target_duration_seconds, state.remaining_seconds),
    )
    state.completed_focus_count = max(0, state.completed_focus_count)

    if not state.is_running:
        return RestoredState(state=state)

    elapsed = elapsed_seconds_since(snapshot.last_persisted_at_epoch_ms, now_ms)
    state.is_paused = False
    state.awaiting_transition = False
    state.remaining_seconds = max(0, state.remaining_seconds - elapsed)
    if state.remaining_seconds > 0:
        return RestoredState(state=state, elapsed_seconds=elapsed)

    state.is_running = False
    return RestoredState(
        state=state,
        elapsed_seconds=elapsed,
        completed_while_away=state.phase,
    )
