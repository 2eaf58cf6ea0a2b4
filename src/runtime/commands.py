"""Dispatcher that executes UI commands against the focus engine."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from contracts.ui_protocol import (
    COMMAND_PAUSE,
    COMMAND_RESET,
    COMMAND_RESUME,
    COMMAND_SKIP,
    COMMAND_START_FOCUS,
    COMMAND_START_STANDALONE,
    COMMAND_STOP,
    COMMAND_SYNC,
    COMMAND_UPDATE_SETTINGS,
)
from focus import FocusActionResult, FocusEngine
from focus.constants import (
    ACTION_START_FOCUS,
    ACTION_START_STANDALONE,
    ACTION_SYNC,
    ACTION_UPDATE_SETTINGS,
    PHASE_FOCUS,
    REASON_GATEWAY_REJECTED,
    REASON_GATEWAY_UNREACHABLE,
    REASON_INVALID_DURATION,
    REASON_SETTINGS_UPDATED,
    REASON_STARTUP,
    REASON_UNSUPPORTED_ACTION,
)
from focus.durations import validate_minutes
from session_gateway import GatewayError, GatewayRejected

from .messages import default_focus_text, focus_rejection_text, focus_status_message
from .ui import RuntimeUIPublisher

_SETTINGS_MINUTE_FIELDS = ("focus_minutes", "short_break_minutes", "long_break_minutes")


class SoundSettingLike(Protocol):
    def set_sound_enabled(self, enabled: bool) -> None:
        ...


class FocusCommandDispatcher:
    """Routes websocket commands to engine operations and publishes the outcome."""
    def __init__(
        self,
        *,
        engine: FocusEngine,
        ui: RuntimeUIPublisher,
        notifier: Optional[SoundSettingLike] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._engine = engine
        self._ui = ui
        self._notifier = notifier
        self._logger = logger or logging.getLogger("runtime.commands")

    async def handle(
        self,
        command: str,
        arguments: dict[str, Any],
    ) -> Optional[FocusActionResult]:
        if command == COMMAND_SYNC:
            self.publish_sync()
            return None

        if command in (COMMAND_START_FOCUS, COMMAND_START_STANDALONE):
            return await self._handle_start(command, arguments)

        if command == COMMAND_UPDATE_SETTINGS:
            return self._handle_update_settings(arguments)

        if command == COMMAND_PAUSE:
            result = self._engine.pause()
        elif command == COMMAND_RESUME:
            result = self._engine.resume()
        elif command == COMMAND_STOP:
            result = self._engine.stop(completed=_as_bool(arguments.get("completed")))
        elif command == COMMAND_SKIP:
            result = self._engine.skip()
        elif command == COMMAND_RESET:
            result = self._engine.reset()
        else:
            self._logger.warning("Unsupported UI command: %s", command)
            self._ui.publish_focus_update(
                self._engine.snapshot(),
                action=command,
                accepted=False,
                reason=REASON_UNSUPPORTED_ACTION,
                message=focus_rejection_text(command, REASON_UNSUPPORTED_ACTION),
            )
            return None

        self.publish_result(result)
        return result

    def publish_sync(self, reason: str = REASON_STARTUP) -> None:
        snapshot = self._engine.snapshot()
        self._ui.publish_focus_update(
            snapshot,
            action=ACTION_SYNC,
            accepted=True,
            reason=reason,
            message=focus_status_message(snapshot),
        )

    def publish_result(self, result: FocusActionResult) -> None:
        if result.accepted:
            message = default_focus_text(result.action, result.snapshot)
        else:
            message = focus_rejection_text(result.action, result.reason)
        self._ui.publish_focus_update(
            result.snapshot,
            action=result.action,
            accepted=result.accepted,
            reason=result.reason,
            message=message,
        )

    async def _handle_start(
        self,
        command: str,
        arguments: dict[str, Any],
    ) -> Optional[FocusActionResult]:
        action = ACTION_START_FOCUS if command == COMMAND_START_FOCUS else ACTION_START_STANDALONE
        try:
            duration_minutes = validate_minutes(arguments.get("duration_minutes"))
        except ValueError as error:
            self._reject_invalid_duration(action, error)
            return None
        try:
            if command == COMMAND_START_FOCUS:
                result = await self._engine.start_focus(
                    _as_optional_str(arguments.get("context_id")),
                    duration_minutes,
                    context_label=_as_optional_str(arguments.get("context_label")),
                )
            else:
                result = await self._engine.start_standalone(
                    duration_minutes,
                    phase=_as_optional_str(arguments.get("phase")) or PHASE_FOCUS,
                )
        except GatewayError as error:
            reason = (
                REASON_GATEWAY_REJECTED
                if isinstance(error, GatewayRejected)
                else REASON_GATEWAY_UNREACHABLE
            )
            self._logger.warning("Start rejected by session gateway: %s", error)
            self._ui.publish_error(str(error), action=action, reason=reason)
            self._ui.publish_focus_update(
                self._engine.snapshot(),
                action=action,
                accepted=False,
                reason=reason,
                message=focus_rejection_text(action, reason),
            )
            return None

        self.publish_result(result)
        return result

    def _handle_update_settings(self, arguments: dict[str, Any]) -> Optional[FocusActionResult]:
        durations = self._engine.durations.updated(arguments)
        try:
            for name in _SETTINGS_MINUTE_FIELDS:
                validate_minutes(getattr(durations, name))
        except ValueError as error:
            self._reject_invalid_duration(ACTION_UPDATE_SETTINGS, error)
            return None

        snapshot = self._engine.update_durations(durations)
        if self._notifier is not None and durations.sound_enabled is not None:
            self._notifier.set_sound_enabled(durations.plays_sound)
        self._logger.info(
            "Settings updated: focus=%s short_break=%s long_break=%s sound=%s",
            durations.focus_minutes,
            durations.short_break_minutes,
            durations.long_break_minutes,
            durations.plays_sound,
        )
        result = FocusActionResult(
            action=ACTION_UPDATE_SETTINGS,
            accepted=True,
            reason=REASON_SETTINGS_UPDATED,
            snapshot=snapshot,
        )
        self.publish_result(result)
        return result

    def _reject_invalid_duration(self, action: str, error: ValueError) -> None:
        self._logger.warning("Rejected %s: %s", action, error)
        self._ui.publish_focus_update(
            self._engine.snapshot(),
            action=action,
            accepted=False,
            reason=REASON_INVALID_DURATION,
            message=focus_rejection_text(action, REASON_INVALID_DURATION),
        )


def _as_optional_str(value: Any) -> Optional[str]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return False
