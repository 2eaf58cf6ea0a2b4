"""Test doubles shared by the focus engine test modules."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional

from focus import FocusEngine
from focus.contracts import ActiveSession, SessionHandle
from persistence import InMemorySnapshotStore
from session_gateway.errors import GatewayError

T0_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now_ms: int = T0_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, seconds: float) -> None:
        self.now_ms += int(seconds * 1000)


class FakeHandle:
    def __init__(self, scheduler: "FakeScheduler", callback: Callable[[], None]):
        self._scheduler = scheduler
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records interval registrations; `fire` plays one interval period."""

    def __init__(self):
        self.handles: list[FakeHandle] = []

    @property
    def active_handles(self) -> list[FakeHandle]:
        return [handle for handle in self.handles if not handle.cancelled]

    def call_every(self, interval_seconds: float, callback: Callable[[], None]) -> FakeHandle:
        assert interval_seconds > 0
        handle = FakeHandle(self, callback)
        self.handles.append(handle)
        return handle

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            active = self.active_handles
            if not active:
                return
            for handle in active:
                handle.callback()


class FakeGateway:
    def __init__(self):
        self.start_calls: list[tuple[Optional[str], int]] = []
        self.end_calls: list[tuple[str, bool, bool]] = []
        self.start_error: Optional[GatewayError] = None
        self.start_gate: Optional[asyncio.Event] = None
        self.active: Optional[ActiveSession] = None
        self.active_error: Optional[GatewayError] = None
        self._next_id = 1

    async def start_focus_session(
        self,
        context_id: Optional[str],
        duration_seconds: int,
    ) -> SessionHandle:
        self.start_calls.append((context_id, duration_seconds))
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        session_id = f"session-{self._next_id}"
        self._next_id += 1
        return SessionHandle(id=session_id, started_at=datetime.now(timezone.utc))

    async def end_session(self, session_id: str, completed: bool, interrupted: bool) -> None:
        self.end_calls.append((session_id, completed, interrupted))

    async def get_active_session(self) -> Optional[ActiveSession]:
        if self.active_error is not None:
            raise self.active_error
        return self.active


class RecordingEndSessions:
    def __init__(self):
        self.submitted: list[tuple[str, bool, bool]] = []
        self.drained = False

    def submit(self, session_id: str, *, completed: bool, interrupted: bool) -> None:
        self.submitted.append((session_id, completed, interrupted))

    async def drain(self, timeout_seconds: float = 5.0) -> None:
        self.drained = True


class RecordingNotifier:
    def __init__(self, error: Optional[Exception] = None):
        self.phases: list[str] = []
        self._error = error

    def announce_phase_complete(self, phase: str) -> None:
        self.phases.append(phase)
        if self._error is not None:
            raise self._error


def build_engine(
    *,
    gateway: Optional[FakeGateway] = None,
    store=None,
    scheduler: Optional[FakeScheduler] = None,
    notifier: Optional[RecordingNotifier] = None,
    end_sessions: Optional[RecordingEndSessions] = None,
    clock: Optional[FakeClock] = None,
    durations=None,
) -> FocusEngine:
    return FocusEngine(
        gateway=gateway or FakeGateway(),
        store=store if store is not None else InMemorySnapshotStore(),
        notifier=notifier or RecordingNotifier(),
        scheduler=scheduler or FakeScheduler(),
        end_sessions=end_sessions or RecordingEndSessions(),
        durations=durations,
        now_ms_fn=clock or FakeClock(),
    )
