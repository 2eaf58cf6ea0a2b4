import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from _fakes import (
    T0_MS,
    FakeClock,
    FakeGateway,
    FakeScheduler,
    RecordingEndSessions,
    RecordingNotifier,
    build_engine,
)
from focus import TimerStateSnapshot
from focus.contracts import ActiveSession
from focus.rehydration import elapsed_seconds_since, restore_state
from persistence import InMemorySnapshotStore, JsonFileSnapshotStore, PersistenceCorrupt
from session_gateway.errors import GatewayUnreachable


def _snapshot(**overrides) -> TimerStateSnapshot:
    values = dict(
        phase="focus",
        remaining_seconds=1500,
        target_duration_seconds=1500,
        is_running=False,
        is_paused=False,
        awaiting_transition=False,
        completed_focus_count=0,
        linked_context_id=None,
        context_label=None,
        server_session_id=None,
        last_persisted_at_epoch_ms=T0_MS,
    )
    values.update(overrides)
    return TimerStateSnapshot(**values)


class _CorruptStore(InMemorySnapshotStore):
    def __init__(self):
        super().__init__()
        self.cleared = False

    def load(self):
        raise PersistenceCorrupt("truncated JSON")

    def clear(self) -> None:
        self.cleared = True
        super().clear()


class RestoreStateTests(unittest.TestCase):
    def test_missing_snapshot_restores_idle(self) -> None:
        restored = restore_state(None, now_ms=T0_MS, idle_duration_seconds=1500)

        self.assertEqual("idle", restored.state.status)
        self.assertEqual(1500, restored.state.remaining_seconds)

    def test_running_snapshot_loses_elapsed_time(self) -> None:
        snapshot = _snapshot(is_running=True, remaining_seconds=900)

        restored = restore_state(snapshot, now_ms=T0_MS + 120_500, idle_duration_seconds=1500)

        self.assertTrue(restored.state.is_running)
        self.assertEqual(780, restored.state.remaining_seconds)
        self.assertEqual(120, restored.elapsed_seconds)
        self.assertIsNone(restored.completed_while_away)

    def test_running_snapshot_that_expired_reports_completion(self) -> None:
        snapshot = _snapshot(phase="short_break", is_running=True, remaining_seconds=60)

        restored = restore_state(snapshot, now_ms=T0_MS + 61_000, idle_duration_seconds=1500)

        self.assertFalse(restored.state.is_running)
        self.assertEqual(0, restored.state.remaining_seconds)
        self.assertEqual("short_break", restored.completed_while_away)

    def test_paused_snapshot_is_unchanged(self) -> None:
        snapshot = _snapshot(is_paused=True, remaining_seconds=600)

        restored = restore_state(snapshot, now_ms=T0_MS + 3_600_000, idle_duration_seconds=1500)

        self.assertEqual("paused", restored.state.status)
        self.assertEqual(600, restored.state.remaining_seconds)

    def test_clock_skew_counts_as_zero_elapsed(self) -> None:
        self.assertEqual(0, elapsed_seconds_since(T0_MS, T0_MS - 5_000))


class FocusEngineRehydrationTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.gateway = FakeGateway()
        self.scheduler = FakeScheduler()
        self.store = InMemorySnapshotStore()
        self.end_sessions = RecordingEndSessions()
        self.notifier = RecordingNotifier()

    def _engine(self, store=None):
        return build_engine(
            gateway=self.gateway,
            scheduler=self.scheduler,
            store=store if store is not None else self.store,
            end_sessions=self.end_sessions,
            notifier=self.notifier,
            clock=self.clock,
        )

    async def test_paused_session_survives_reload(self) -> None:
        first = self._engine()
        await first.start_focus("priority-1")
        self.scheduler.fire(600)
        first.pause()
        first.on_detach()

        self.clock.advance(3600)
        engine = self._engine()
        snapshot = await engine.init()

        self.assertEqual("paused", snapshot.status)
        self.assertEqual(900, snapshot.remaining_seconds)
        self.assertEqual("session-1", snapshot.server_session_id)
        self.assertEqual([], self.scheduler.active_handles)
        self.assertTrue(engine.resume().accepted)
        self.assertEqual(900, engine.snapshot().remaining_seconds)

    async def test_focus_finished_while_away_completes_on_launch(self) -> None:
        self.store.save(
            _snapshot(
                is_running=True,
                remaining_seconds=600,
                server_session_id="S",
                linked_context_id="priority-9",
            )
        )
        self.clock.advance(700)
        self.gateway.active = ActiveSession(
            id="S",
            started_at=datetime.now(timezone.utc),
        )

        snapshot = await self._engine().init()

        self.assertEqual("short_break", snapshot.phase)
        self.assertEqual("awaiting_transition", snapshot.status)
        self.assertEqual(1, snapshot.completed_focus_count)
        self.assertIsNone(snapshot.server_session_id)
        self.assertEqual([("S", True, False)], self.end_sessions.submitted)
        self.assertEqual(["focus"], self.notifier.phases)
        self.assertEqual([], self.scheduler.active_handles)

    async def test_running_session_resumes_with_corrected_remaining(self) -> None:
        self.store.save(_snapshot(is_running=True, remaining_seconds=600))
        self.clock.advance(100)

        snapshot = await self._engine().init()

        self.assertEqual("running", snapshot.status)
        self.assertEqual(500, snapshot.remaining_seconds)
        self.assertEqual(1, len(self.scheduler.active_handles))

    async def test_rehydration_is_idempotent(self) -> None:
        self.store.save(_snapshot(is_running=True, remaining_seconds=600))
        self.clock.advance(42)
        engine = self._engine()

        first = engine.on_attach()
        second = engine.on_attach()

        self.assertEqual(first.remaining_seconds, second.remaining_seconds)
        self.assertEqual(558, second.remaining_seconds)
        self.assertEqual(1, len(self.scheduler.active_handles))

    async def test_corrupt_snapshot_rehydrates_idle_and_is_cleared(self) -> None:
        store = _CorruptStore()

        snapshot = await self._engine(store=store).init()

        self.assertEqual("idle", snapshot.status)
        self.assertTrue(store.cleared)

    async def test_undecodable_snapshot_file_rehydrates_idle(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "timer.json"
            path.write_bytes(b"\xff\xfe{not utf8")
            store = JsonFileSnapshotStore(path)

            snapshot = await self._engine(store=store).init()

            self.assertEqual("idle", snapshot.status)
            self.assertEqual("idle", store.load().status)

    async def test_completed_session_still_listed_after_restart_is_not_recounted(self) -> None:
        first = self._engine()
        await first.start_focus()
        self.scheduler.fire(1500)
        first.on_detach()
        self.gateway.active = ActiveSession(
            id="session-1",
            started_at=datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc),
            target_duration_seconds=1500,
        )

        self.clock.advance(60)
        snapshot = await self._engine().init()

        self.assertEqual("short_break", snapshot.phase)
        self.assertEqual("awaiting_transition", snapshot.status)
        self.assertEqual(1, snapshot.completed_focus_count)
        self.assertIsNone(snapshot.server_session_id)
        self.assertEqual(
            [("session-1", True, False), ("session-1", True, False)],
            self.end_sessions.submitted,
        )
        self.assertEqual(["focus"], self.notifier.phases)

    async def test_skipped_break_keeps_ended_session_from_being_adopted(self) -> None:
        first = self._engine()
        await first.start_focus()
        self.scheduler.fire(1500)
        self.assertTrue(first.skip().accepted)
        first.on_detach()
        self.gateway.active = ActiveSession(
            id="session-1",
            started_at=datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc),
            target_duration_seconds=1500,
        )

        self.clock.advance(60)
        snapshot = await self._engine().init()

        self.assertEqual("idle", snapshot.status)
        self.assertEqual(1, snapshot.completed_focus_count)
        self.assertIsNone(snapshot.server_session_id)
        self.assertEqual([], self.scheduler.active_handles)
        self.assertEqual("session-1", self.end_sessions.submitted[-1][0])

    async def test_stopped_session_is_reported_again_as_interrupted(self) -> None:
        first = self._engine()
        await first.start_focus()
        self.scheduler.fire(30)
        first.stop()
        first.on_detach()
        self.gateway.active = ActiveSession(
            id="session-1",
            started_at=datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc),
        )

        snapshot = await self._engine().init()

        self.assertEqual("idle", snapshot.status)
        self.assertEqual(
            [("session-1", False, True), ("session-1", False, True)],
            self.end_sessions.submitted,
        )

    async def test_unknown_server_session_is_adopted(self) -> None:
        started_at = datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc) - timedelta(minutes=5)
        self.gateway.active = ActiveSession(
            id="remote-1",
            started_at=started_at,
            target_duration_seconds=1500,
            context_id="priority-2",
            context_label="Plan sprint",
        )

        snapshot = await self._engine().init()

        self.assertEqual("running", snapshot.status)
        self.assertEqual("remote-1", snapshot.server_session_id)
        self.assertEqual(1200, snapshot.remaining_seconds)
        self.assertEqual("priority-2", snapshot.linked_context_id)
        self.assertEqual("Plan sprint", snapshot.context_label)
        self.assertEqual(1, len(self.scheduler.active_handles))

    async def test_adoption_ends_stale_local_session(self) -> None:
        self.store.save(_snapshot(is_paused=True, remaining_seconds=300, server_session_id="old"))
        self.gateway.active = ActiveSession(
            id="new",
            started_at=datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc),
        )

        snapshot = await self._engine().init()

        self.assertEqual("new", snapshot.server_session_id)
        self.assertEqual(1500, snapshot.remaining_seconds)
        self.assertEqual([("old", False, True)], self.end_sessions.submitted)

    async def test_expired_server_session_is_completed(self) -> None:
        self.gateway.active = ActiveSession(
            id="remote-1",
            started_at=datetime.fromtimestamp(T0_MS / 1000, tz=timezone.utc) - timedelta(hours=2),
            target_duration_seconds=1500,
        )

        snapshot = await self._engine().init()

        self.assertEqual("short_break", snapshot.phase)
        self.assertEqual(1, snapshot.completed_focus_count)
        self.assertEqual([("remote-1", True, False)], self.end_sessions.submitted)

    async def test_gateway_error_keeps_local_view(self) -> None:
        self.store.save(_snapshot(is_paused=True, remaining_seconds=400, server_session_id="S"))
        self.gateway.active_error = GatewayUnreachable("offline")

        snapshot = await self._engine().init()

        self.assertEqual("paused", snapshot.status)
        self.assertEqual(400, snapshot.remaining_seconds)
        self.assertEqual("S", snapshot.server_session_id)

    async def test_detach_stops_ticking_and_persists(self) -> None:
        engine = self._engine()
        await engine.start_focus()
        self.scheduler.fire(10)

        engine.on_detach()

        self.assertEqual([], self.scheduler.active_handles)
        stored = self.store.load()
        self.assertTrue(stored.is_running)
        self.assertEqual(1490, stored.remaining_seconds)
        self.assertEqual(self.clock.now_ms, stored.last_persisted_at_epoch_ms)

        self.clock.advance(30)
        snapshot = engine.on_attach()
        self.assertEqual(1460, snapshot.remaining_seconds)
        self.assertEqual(1, len(self.scheduler.active_handles))

    async def test_dispose_drains_pending_reports(self) -> None:
        engine = self._engine()
        await engine.start_focus()

        await engine.dispose()

        self.assertTrue(self.end_sessions.drained)
        self.assertEqual([], self.scheduler.active_handles)
        self.assertTrue(self.store.load().is_running)


if __name__ == "__main__":
    unittest.main()
