"""Focus/pomodoro state machine with snapshot persistence and server reconciliation."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from persistence.errors import PersistenceCorrupt, PersistenceError
from session_gateway.errors import GatewayError

from .constants import (
    ACTION_PAUSE,
    ACTION_RESET,
    ACTION_RESUME,
    ACTION_SKIP,
    ACTION_START_FOCUS,
    ACTION_START_STANDALONE,
    ACTION_STOP,
    EVENT_COMMAND,
    EVENT_PHASE_COMPLETED,
    EVENT_REHYDRATED,
    EVENT_SERVER_SYNC,
    EVENT_TICK,
    PHASE_FOCUS,
    PHASE_LABELS,
    PHASES,
    REASON_ALREADY_RUNNING,
    REASON_INVALID_PHASE,
    REASON_NOT_ACTIVE,
    REASON_NOT_PAUSED,
    REASON_NOT_RUNNING,
    REASON_NOT_SKIPPABLE,
    REASON_PAUSED,
    REASON_RESET,
    REASON_RESUMED,
    REASON_SKIPPED,
    REASON_STARTED,
    REASON_STOPPED,
    REASON_SUPERSEDED,
    STATUS_IDLE,
    TICK_INTERVAL_SECONDS,
)
from .contracts import (
    ActiveSession,
    EndSessionSinkLike,
    NotificationSinkLike,
    SessionGatewayLike,
    SnapshotStoreLike,
)
from .durations import DurationConfig, minutes_to_seconds, next_break_phase, resolve
from .outbox import EndSessionDispatcher
from .rehydration import restore_state
from .scheduling import IntervalHandleLike, IntervalSchedulerLike
from .state import FocusActionResult, TimerState, TimerStateSnapshot

FocusListener = Callable[[TimerStateSnapshot, str], None]


def _wall_clock_ms() -> int:
    return int(time.time() * 1000)


class FocusEngine:
    """Single owner of the countdown state; one instance per device/user view.

    Local transitions are applied immediately and persisted before any
    gateway call is issued. Session ends travel through a fire-and-forget
    dispatcher so a slow or unreachable server never stalls the countdown.
    """

    def __init__(
        self,
        *,
        gateway: SessionGatewayLike,
        store: SnapshotStoreLike,
        notifier: NotificationSinkLike,
        scheduler: IntervalSchedulerLike,
        end_sessions: Optional[EndSessionSinkLike] = None,
        durations: Optional[DurationConfig] = None,
        now_ms_fn: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._logger = logger or logging.getLogger("focus")
        self._gateway = gateway
        self._store = store
        self._notifier = notifier
        self._scheduler = scheduler
        self._end_sessions = end_sessions or EndSessionDispatcher(
            gateway,
            logger=self._logger.getChild("end_sessions"),
        )
        self._durations = durations or DurationConfig()
        self._now_ms = now_ms_fn or _wall_clock_ms

        self._state = TimerState.idle(resolve(PHASE_FOCUS, self._durations))
        self._last_persisted_at_ms = 0
        self._interval: Optional[IntervalHandleLike] = None
        self._attached = True
        self._start_in_flight = False
        self._generation = 0
        self._listeners: list[FocusListener] = []
        self._reported_session_ids: set[str] = set()

    # ----- Lifecycle -----
    async def init(self) -> TimerStateSnapshot:
        """Rehydrate from the store, then adopt an unknown server-side session."""
        self._attached = True
        self._rehydrate_local()
        await self._reconcile_with_server()
        return self.snapshot()

    async def dispose(self, timeout_seconds: float = 5.0) -> None:
        self._attached = False
        self._disarm_interval()
        self._persist()
        await self._end_sessions.drain(timeout_seconds)
        self._listeners.clear()

    def on_attach(self) -> TimerStateSnapshot:
        """Host UI mounted or app foregrounded: correct for the time spent away."""
        self._attached = True
        self._rehydrate_local()
        return self.snapshot()

    def on_detach(self) -> None:
        """Host UI unmounted or app backgrounded: persist and stop ticking."""
        self._attached = False
        self._disarm_interval()
        self._persist()

    # ----- Observation -----
    @property
    def durations(self) -> DurationConfig:
        return self._durations

    @property
    def has_interval(self) -> bool:
        return self._interval is not None

    def snapshot(self) -> TimerStateSnapshot:
        return self._state.freeze(self._last_persisted_at_ms)

    def subscribe(self, listener: FocusListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update_durations(self, durations: DurationConfig) -> TimerStateSnapshot:
        """Apply new settings; loaded phases keep their duration, idle refreshes."""
        self._durations = durations
        if self._state.status == STATUS_IDLE:
            target = resolve(PHASE_FOCUS, durations)
            self._state.phase = PHASE_FOCUS
            self._state.remaining_seconds = target
            self._state.target_duration_seconds = target
            self._commit(EVENT_COMMAND)
        return self.snapshot()

    # ----- Commands -----
    async def start_focus(
        self,
        context_id: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        *,
        context_label: Optional[str] = None,
    ) -> FocusActionResult:
        return await self._start(
            ACTION_START_FOCUS,
            PHASE_FOCUS,
            duration_minutes,
            context_id=context_id,
            context_label=context_label,
        )

    async def start_standalone(
        self,
        duration_minutes: Optional[int] = None,
        phase: str = PHASE_FOCUS,
    ) -> FocusActionResult:
        if phase not in PHASES:
            return self._result(ACTION_START_STANDALONE, False, REASON_INVALID_PHASE)
        return await self._start(
            ACTION_START_STANDALONE,
            phase,
            duration_minutes,
            context_id=None,
            context_label=f"Pomodoro: {PHASE_LABELS[phase]}",
        )

    def pause(self) -> FocusActionResult:
        if not self._state.is_running:
            return self._result(ACTION_PAUSE, False, REASON_NOT_RUNNING)

        self._disarm_interval()
        self._state.is_running = False
        self._state.is_paused = True
        self._commit(EVENT_COMMAND)
        self._logger.info(
            "Focus paused: phase=%s remaining=%ss",
            self._state.phase,
            self._state.remaining_seconds,
        )
        return self._result(ACTION_PAUSE, True, REASON_PAUSED)

    def resume(self) -> FocusActionResult:
        state = self._state
        if state.is_running or not state.is_paused or state.remaining_seconds <= 0:
            return self._result(ACTION_RESUME, False, REASON_NOT_PAUSED)

        state.is_running = True
        state.is_paused = False
        state.awaiting_transition = False
        self._restart_interval()
        self._commit(EVENT_COMMAND)
        self._logger.info(
            "Focus resumed: phase=%s remaining=%ss",
            state.phase,
            state.remaining_seconds,
        )
        return self._result(ACTION_RESUME, True, REASON_RESUMED)

    def stop(self, completed: bool = False) -> FocusActionResult:
        if self._state.status == STATUS_IDLE and not self._start_in_flight:
            return self._result(ACTION_STOP, False, REASON_NOT_ACTIVE)

        self._generation += 1
        self._disarm_interval()
        session_id = self._state.server_session_id
        self._replace_state(
            TimerState.idle(
                resolve(PHASE_FOCUS, self._durations),
                completed_focus_count=self._state.completed_focus_count,
            )
        )
        self._commit(EVENT_COMMAND)
        if session_id:
            self._report_end(
                session_id,
                completed=completed,
                interrupted=not completed,
            )
        self._logger.info("Focus stopped: completed=%s session=%s", completed, session_id)
        return self._result(ACTION_STOP, True, REASON_STOPPED)

    def skip(self) -> FocusActionResult:
        state = self._state
        skippable = state.is_break and not state.is_running and (
            state.awaiting_transition or state.is_paused
        )
        if not skippable:
            return self._result(ACTION_SKIP, False, REASON_NOT_SKIPPABLE)

        skipped_phase = state.phase
        self._replace_state(
            TimerState.idle(
                resolve(PHASE_FOCUS, self._durations),
                completed_focus_count=state.completed_focus_count,
            )
        )
        self._state.linked_context_id = state.linked_context_id
        self._state.context_label = state.context_label
        self._commit(EVENT_COMMAND)
        self._logger.info("Break skipped: phase=%s", skipped_phase)
        return self._result(ACTION_SKIP, True, REASON_SKIPPED)

    def reset(self) -> FocusActionResult:
        """Caller-owned reset (for example a new day): zeroes the focus counter."""
        self._generation += 1
        self._disarm_interval()
        session_id = self._state.server_session_id
        self._replace_state(TimerState.idle(resolve(PHASE_FOCUS, self._durations)))
        self._last_persisted_at_ms = 0
        try:
            self._store.clear()
        except PersistenceError as error:
            self._logger.error("Failed to clear timer snapshot: %s", error)
        self._notify_listeners(self.snapshot(), EVENT_COMMAND)
        if session_id:
            self._report_end(
                session_id,
                completed=False,
                interrupted=True,
                persist=False,
            )
        self._logger.info("Focus engine reset")
        return self._result(ACTION_RESET, True, REASON_RESET)

    def tick(self) -> None:
        """Advance a running countdown by one second."""
        state = self._state
        if not state.is_running:
            return

        state.remaining_seconds = max(0, state.remaining_seconds - 1)
        if state.remaining_seconds > 0:
            self._commit(EVENT_TICK)
            return

        state.is_running = False
        self._complete_phase()

    # ----- Internals -----
    async def _start(
        self,
        action: str,
        phase: str,
        duration_minutes: Optional[int],
        *,
        context_id: Optional[str],
        context_label: Optional[str],
    ) -> FocusActionResult:
        if self._state.is_running or self._start_in_flight:
            return self._result(action, False, REASON_ALREADY_RUNNING)

        target = minutes_to_seconds(duration_minutes, phase, self._durations)
        server_session_id: Optional[str] = None
        if phase == PHASE_FOCUS:
            generation = self._generation
            self._start_in_flight = True
            try:
                handle = await self._gateway.start_focus_session(context_id, target)
            except GatewayError as error:
                self._logger.warning("Focus session start failed: %s", error)
                raise
            finally:
                self._start_in_flight = False

            if generation != self._generation:
                self._logger.info(
                    "Focus start superseded while awaiting server: session=%s",
                    handle.id,
                )
                self._report_end(handle.id, completed=False, interrupted=True)
                return self._result(action, False, REASON_SUPERSEDED)
            server_session_id = handle.id

        previous_session_id = self._state.server_session_id
        self._generation += 1
        self._replace_state(
            TimerState(
                phase=phase,
                remaining_seconds=target,
                target_duration_seconds=target,
                is_running=True,
                completed_focus_count=self._state.completed_focus_count,
                linked_context_id=context_id,
                context_label=context_label,
                server_session_id=server_session_id,
            )
        )
        self._restart_interval()
        self._commit(EVENT_COMMAND)
        if previous_session_id and previous_session_id != server_session_id:
            self._report_end(
                previous_session_id,
                completed=False,
                interrupted=True,
            )
        self._logger.info(
            "Focus started: phase=%s duration=%ss session=%s context=%s",
            phase,
            target,
            server_session_id,
            context_id,
        )
        return self._result(action, True, REASON_STARTED)

    def _complete_phase(self) -> None:
        state = self._state
        completed_phase = state.phase
        self._disarm_interval()

        ended_session_id: Optional[str] = None
        if completed_phase == PHASE_FOCUS:
            count = state.completed_focus_count + 1
            ended_session_id = state.server_session_id
            next_phase = next_break_phase(count)
            target = resolve(next_phase, self._durations)
            self._replace_state(
                TimerState(
                    phase=next_phase,
                    remaining_seconds=target,
                    target_duration_seconds=target,
                    is_running=False,
                    is_paused=True,
                    awaiting_transition=True,
                    completed_focus_count=count,
                    linked_context_id=state.linked_context_id,
                    context_label=state.context_label,
                )
            )
        else:
            self._replace_state(
                TimerState.idle(
                    resolve(PHASE_FOCUS, self._durations),
                    completed_focus_count=state.completed_focus_count,
                )
            )

        self._commit(EVENT_PHASE_COMPLETED)
        self._logger.info(
            "Phase completed: phase=%s completed_focus=%d next=%s",
            completed_phase,
            self._state.completed_focus_count,
            self._state.phase,
        )
        self._announce(completed_phase)
        if ended_session_id:
            self._report_end(ended_session_id, completed=True, interrupted=False)

    def _rehydrate_local(self) -> None:
        try:
            snapshot = self._store.load()
        except PersistenceCorrupt as error:
            self._logger.warning("Discarding unreadable timer snapshot: %s", error)
            snapshot = None
            try:
                self._store.clear()
            except PersistenceError as clear_error:
                self._logger.error("Failed to clear timer snapshot: %s", clear_error)
        except PersistenceError as error:
            self._logger.error("Failed to load timer snapshot: %s", error)
            snapshot = None

        self._disarm_interval()
        restored = restore_state(
            snapshot,
            now_ms=self._now_ms(),
            idle_duration_seconds=resolve(PHASE_FOCUS, self._durations),
        )
        self._state = restored.state
        if restored.completed_while_away is not None:
            self._logger.info(
                "Phase finished while away: phase=%s elapsed=%ss",
                restored.completed_while_away,
                restored.elapsed_seconds,
            )
            self._complete_phase()
            return

        self._restart_interval()
        self._commit(EVENT_REHYDRATED)

    async def _reconcile_with_server(self) -> None:
        generation = self._generation
        try:
            active = await self._gateway.get_active_session()
        except GatewayError as error:
            self._logger.warning("Active session lookup failed: %s", error)
            return

        if active is None or active.id == self._state.server_session_id:
            return
        if (
            active.id == self._state.ended_session_id
            and active.id not in self._reported_session_ids
        ):
            # Ended before the last shutdown but the report never arrived.
            self._logger.info("Server still lists ended session %s; reporting again", active.id)
            completed = self._state.ended_session_completed
            self._reported_session_ids.add(active.id)
            self._end_sessions.submit(
                active.id,
                completed=completed,
                interrupted=not completed,
            )
            return
        if active.id in self._reported_session_ids:
            self._logger.info(
                "Ignoring server session %s; its end was already reported",
                active.id,
            )
            return
        if generation != self._generation:
            self._logger.info(
                "Skipping server session %s; local state changed during lookup",
                active.id,
            )
            return
        self._adopt_server_session(active)

    def _adopt_server_session(self, active: ActiveSession) -> None:
        previous_session_id = self._state.server_session_id
        target = active.target_duration_seconds
        if not target or target <= 0:
            target = resolve(PHASE_FOCUS, self._durations)

        started_at_ms = int(active.started_at.timestamp() * 1000)
        elapsed = max(0, (self._now_ms() - started_at_ms) // 1000)
        remaining = max(0, min(target, target - elapsed))

        self._generation += 1
        self._replace_state(
            TimerState(
                phase=PHASE_FOCUS,
                remaining_seconds=remaining,
                target_duration_seconds=target,
                is_running=remaining > 0,
                completed_focus_count=self._state.completed_focus_count,
                linked_context_id=active.context_id,
                context_label=active.context_label,
                server_session_id=active.id,
            )
        )
        self._logger.info(
            "Adopted server session %s: remaining=%ss (replaced=%s)",
            active.id,
            remaining,
            previous_session_id,
        )
        if remaining > 0:
            self._restart_interval()
            self._commit(EVENT_SERVER_SYNC)
        else:
            self._complete_phase()

        if previous_session_id:
            self._report_end(
                previous_session_id,
                completed=False,
                interrupted=True,
            )

    def _report_end(
        self,
        session_id: str,
        *,
        completed: bool,
        interrupted: bool,
        persist: bool = True,
    ) -> None:
        """Record the ended id in the snapshot, then hand the report to the outbox."""
        self._reported_session_ids.add(session_id)
        self._state.ended_session_id = session_id
        self._state.ended_session_completed = completed
        if persist:
            self._persist()
        self._end_sessions.submit(session_id, completed=completed, interrupted=interrupted)

    def _replace_state(self, state: TimerState) -> None:
        state.ended_session_id = self._state.ended_session_id
        state.ended_session_completed = self._state.ended_session_completed
        self._state = state

    def _restart_interval(self) -> None:
        self._disarm_interval()
        if self._state.is_running and self._attached:
            self._interval = self._scheduler.call_every(TICK_INTERVAL_SECONDS, self.tick)

    def _disarm_interval(self) -> None:
        interval = self._interval
        self._interval = None
        if interval is not None:
            interval.cancel()

    def _persist(self) -> TimerStateSnapshot:
        now_ms = self._now_ms()
        snapshot = self._state.freeze(now_ms)
        try:
            self._store.save(snapshot)
            self._last_persisted_at_ms = now_ms
        except PersistenceError as error:
            self._logger.error("Failed to persist timer snapshot: %s", error)
        return snapshot

    def _commit(self, event: str) -> None:
        snapshot = self._persist()
        self._notify_listeners(snapshot, event)

    def _notify_listeners(self, snapshot: TimerStateSnapshot, event: str) -> None:
        for listener in tuple(self._listeners):
            try:
                listener(snapshot, event)
            except Exception as error:
                self._logger.error("Focus listener failed: %s", error, exc_info=True)

    def _announce(self, phase: str) -> None:
        try:
            self._notifier.announce_phase_complete(phase)
        except Exception as error:
            self._logger.warning("Phase notification failed: %s", error)

    def _result(self, action: str, accepted: bool, reason: str) -> FocusActionResult:
        return FocusActionResult(
            action=action,
            accepted=accepted,
            reason=reason,
            snapshot=self.snapshot(),
        )
