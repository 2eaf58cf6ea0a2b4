"""Fire-and-forget delivery of session end reports."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from session_gateway.errors import GatewayError

from .contracts import SessionGatewayLike


class EndSessionDispatcher:
    """Schedules `end_session` calls as tracked tasks and absorbs their failures.

    The local state transition has already happened when a report is
    submitted, so a failed delivery is only logged. The server either reaps
    the open record or it is adopted on the next active-session lookup.
    """

    def __init__(
        self,
        gateway: SessionGatewayLike,
        logger: Optional[logging.Logger] = None,
    ):
        self._gateway = gateway
        self._logger = logger or logging.getLogger("focus.end_sessions")
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def submit(self, session_id: str, *, completed: bool, interrupted: bool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.error(
                "No running event loop; end of session %s was not reported",
                session_id,
            )
            return

        task = loop.create_task(
            self._deliver(session_id, completed=completed, interrupted=interrupted),
            name=f"end-session-{session_id}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self, timeout_seconds: float = 5.0) -> None:
        """Wait for outstanding reports, giving up after `timeout_seconds`."""
        if not self._pending:
            return
        pending = tuple(self._pending)
        _, not_done = await asyncio.wait(pending, timeout=timeout_seconds)
        if not_done:
            self._logger.warning(
                "%d session end report(s) still pending after %.1fs",
                len(not_done),
                timeout_seconds,
            )

    async def _deliver(self, session_id: str, *, completed: bool, interrupted: bool) -> None:
        try:
            await self._gateway.end_session(session_id, completed, interrupted)
            self._logger.info(
                "Session %s reported ended: completed=%s interrupted=%s",
                session_id,
                completed,
                interrupted,
            )
        except GatewayError as error:
            self._logger.warning("Failed to report end of session %s: %s", session_id, error)
        except Exception as error:
            self._logger.error(
                "Unexpected error reporting end of session %s: %s",
                session_id,
                error,
                exc_info=True,
            )
