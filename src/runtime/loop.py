"""Runtime orchestration for the focus engine, UI bridge, and gateway client."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from focus import FocusEngine, TimerStateSnapshot
from focus.constants import (
    ACTION_COMPLETED,
    ACTION_SYNC,
    ACTION_TICK,
    EVENT_COMMAND,
    EVENT_PHASE_COMPLETED,
    EVENT_REHYDRATED,
    EVENT_SERVER_SYNC,
    EVENT_TICK,
    REASON_COMPLETED,
    REASON_STARTUP,
    REASON_TICK,
)
from server import UIServer

from .commands import FocusCommandDispatcher, SoundSettingLike
from .messages import default_focus_text, focus_status_message
from .ui import RuntimeUIPublisher

_EVENT_TO_ACTION: dict[str, tuple[str, str]] = {
    EVENT_TICK: (ACTION_TICK, REASON_TICK),
    EVENT_PHASE_COMPLETED: (ACTION_COMPLETED, REASON_COMPLETED),
    EVENT_REHYDRATED: (ACTION_SYNC, REASON_STARTUP),
    EVENT_SERVER_SYNC: (ACTION_SYNC, EVENT_SERVER_SYNC),
}


@dataclass(frozen=True)
class RuntimeHooks:
    """Injectable lifecycle hooks used by runtime startup and shutdown flow."""
    setup_signal_handlers: Callable[[asyncio.Event], None]


@dataclass(frozen=True)
class RuntimeBootstrap:
    """Dependency bundle required to construct the focus runtime."""
    logger: logging.Logger
    engine: FocusEngine
    ui_server: Optional[UIServer]
    hooks: RuntimeHooks
    close_gateway: Optional[Callable[[], Awaitable[None]]] = None
    notifier: Optional[SoundSettingLike] = None


class FocusRuntime:
    """Owns the engine lifecycle and forwards state changes to the UI bridge."""
    def __init__(self, bootstrap: RuntimeBootstrap):
        self._bootstrap = bootstrap
        self._logger = bootstrap.logger
        self._engine = bootstrap.engine
        self._ui = RuntimeUIPublisher(bootstrap.ui_server)
        self._dispatcher = FocusCommandDispatcher(
            engine=self._engine,
            ui=self._ui,
            notifier=bootstrap.notifier,
            logger=self._logger.getChild("commands"),
        )
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def dispatcher(self) -> FocusCommandDispatcher:
        return self._dispatcher

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> int:
        stop = stop_event or asyncio.Event()
        self._bootstrap.hooks.setup_signal_handlers(stop)
        self._unsubscribe = self._engine.subscribe(self.handle_engine_update)

        try:
            ui_server = self._bootstrap.ui_server
            if ui_server is not None:
                ui_server.set_command_handler(self._dispatcher.handle)
                self._logger.info("Starting UI server...")
                await ui_server.start()

            snapshot = await self._engine.init()
            self._logger.info("Focus engine ready: %s", focus_status_message(snapshot))
            self._dispatcher.publish_sync()

            await stop.wait()
            self._logger.info("Shutdown requested.")
            return 0
        except OSError as error:
            self._logger.error("Failed to start UI server: %s", error)
            return 1
        except Exception as error:
            self._logger.error("Unexpected error: %s", error, exc_info=True)
            return 1
        finally:
            await self._shutdown()

    def handle_engine_update(self, snapshot: TimerStateSnapshot, event: str) -> None:
        # Command results are published by the dispatcher with accept/reject info.
        if event == EVENT_COMMAND:
            return
        action, reason = _EVENT_TO_ACTION.get(event, (ACTION_SYNC, event))
        if event == EVENT_PHASE_COMPLETED:
            message = default_focus_text(ACTION_COMPLETED, snapshot)
        else:
            message = focus_status_message(snapshot)
        self._ui.publish_focus_update(
            snapshot,
            action=action,
            accepted=True,
            reason=reason,
            message=message,
        )

    async def _shutdown(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        self._logger.info("Disposing focus engine...")
        try:
            await self._engine.dispose(timeout_seconds=5.0)
        except Exception as error:
            self._logger.error("Error disposing focus engine: %s", error, exc_info=True)

        ui_server = self._bootstrap.ui_server
        if ui_server is not None:
            self._logger.info("Stopping UI server...")
            try:
                await ui_server.stop(timeout_seconds=5.0)
            except Exception as error:
                self._logger.error("Error stopping UI server: %s", error, exc_info=True)

        close_gateway = self._bootstrap.close_gateway
        if close_gateway is not None:
            try:
                await close_gateway()
            except Exception as error:
                self._logger.error("Error closing session gateway: %s", error, exc_info=True)
