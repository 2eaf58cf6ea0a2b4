"""Interval scheduling on the host event loop for the once-per-second tick."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Optional, Protocol


class IntervalHandleLike(Protocol):
    def cancel(self) -> None:
        ...


class IntervalSchedulerLike(Protocol):
    """Host timer facility used by the engine to drive `tick()`."""
    def call_every(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> IntervalHandleLike:
        ...


class AsyncioInterval:
    """Repeating `call_at` chain that can be cancelled exactly once."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        interval_seconds: float,
        callback: Callable[[], None],
        logger: logging.Logger,
    ):
        self._loop = loop
        self._interval_seconds = interval_seconds
        self._callback = callback
        self._logger = logger
        self._cancelled = False
        self._next_deadline = loop.time() + interval_seconds
        self._timer: Optional[asyncio.TimerHandle] = loop.call_at(
            self._next_deadline,
            self._fire,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _fire(self) -> None:
        self._timer = None
        self._run_callback()
        self._next_deadline += self._interval_seconds
        # Deadlines missed while the loop was blocked are replayed, not dropped.
        now = self._loop.time()
        while not self._cancelled and self._next_deadline <= now:
            self._run_callback()
            self._next_deadline += self._interval_seconds
        if self._cancelled:
            return
        self._timer = self._loop.call_at(self._next_deadline, self._fire)

    def _run_callback(self) -> None:
        if self._cancelled:
            return
        try:
            self._callback()
        except Exception as error:
            self._logger.error("Interval callback failed: %s", error, exc_info=True)


class AsyncioIntervalScheduler:
    """Creates `AsyncioInterval` handles on the running (or given) event loop."""

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._loop = loop
        self._logger = logger or logging.getLogger("focus.scheduler")

    def call_every(
        self,
        interval_seconds: float,
        callback: Callable[[], None],
    ) -> AsyncioInterval:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than zero")
        loop = self._loop or asyncio.get_running_loop()
        return AsyncioInterval(loop, interval_seconds, callback, self._logger)
