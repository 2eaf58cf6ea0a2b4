from __future__ import annotations

from typing import Optional

from focus.state import TimerStateSnapshot


class InMemorySnapshotStore:
    """Process-local store for headless runs and tests."""

    def __init__(self, snapshot: Optional[TimerStateSnapshot] = None):
        self._snapshot = snapshot
        self.save_count = 0

    def save(self, snapshot: TimerStateSnapshot) -> None:
        self._snapshot = snapshot
        self.save_count += 1

    def load(self) -> Optional[TimerStateSnapshot]:
        return self._snapshot

    def clear(self) -> None:
        self._snapshot = None
