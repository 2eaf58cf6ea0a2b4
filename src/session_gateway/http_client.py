"""httpx client for the product's `/api/focus-sessions` endpoints."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import quote

import httpx

from focus.contracts import ActiveSession, SessionHandle

from .config import SessionGatewayConfig
from .errors import GatewayRejected, GatewayUnreachable

SESSIONS_PATH = "/api/focus-sessions"
SESSION_TYPE_FOCUS = "focus"


def duration_minutes(duration_seconds: int) -> int:
    """Whole minutes sent as `durationMins`; never below one."""
    return max(1, round(duration_seconds / 60))


class HttpSessionGateway:
    """Session gateway backed by the product REST API."""

    def __init__(
        self,
        config: SessionGatewayConfig,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("focus.gateway")
        headers = {"Accept": "application/json"}
        if config.api_token:
            headers["Authorization"] = f"Bearer {config.api_token}"
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=headers,
            timeout=config.timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def start_focus_session(
        self,
        context_id: Optional[str],
        duration_seconds: int,
    ) -> SessionHandle:
        if context_id:
            path = f"{SESSIONS_PATH}/priority/{quote(str(context_id), safe='')}/start"
        else:
            path = f"{SESSIONS_PATH}/standalone/start"
        payload = await self._request(
            "POST",
            path,
            json={
                "durationMins": duration_minutes(duration_seconds),
                "sessionType": SESSION_TYPE_FOCUS,
            },
        )
        session = parse_session(_unwrap_session(payload))
        if session is None:
            raise GatewayUnreachable("Start response did not contain a session")
        self._logger.debug("Server started focus session %s", session.id)
        return SessionHandle(id=session.id, started_at=session.started_at)

    async def end_session(
        self,
        session_id: str,
        completed: bool,
        interrupted: bool,
    ) -> None:
        await self._request(
            "POST",
            f"{SESSIONS_PATH}/{quote(str(session_id), safe='')}/end",
            json={"completed": bool(completed), "interrupted": bool(interrupted)},
        )
        self._logger.debug(
            "Server ended focus session %s (completed=%s, interrupted=%s)",
            session_id,
            completed,
            interrupted,
        )

    async def get_active_session(self) -> Optional[ActiveSession]:
        payload = await self._request("GET", f"{SESSIONS_PATH}/active")
        return parse_session(_unwrap_session(payload))

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as error:
            raise GatewayUnreachable(f"{method} {path} timed out") from error
        except httpx.HTTPError as error:
            raise GatewayUnreachable(f"{method} {path} failed: {error}") from error

        status = response.status_code
        if status >= 500:
            raise GatewayUnreachable(f"{method} {path} returned HTTP {status}")
        if status >= 400:
            raise GatewayRejected(
                _error_message(response) or f"{method} {path} returned HTTP {status}",
                status_code=status,
            )

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as error:
            raise GatewayUnreachable(
                f"{method} {path} returned a non-JSON body"
            ) from error


def parse_session(raw: Any) -> Optional[ActiveSession]:
    """Convert a session JSON object into `ActiveSession`; `None` stays `None`."""
    if raw is None:
        return None
    if not isinstance(raw, Mapping):
        raise GatewayUnreachable("Session payload must be a JSON object")

    session_id = raw.get("id")
    if isinstance(session_id, bool) or not isinstance(session_id, (str, int)):
        raise GatewayUnreachable("Session payload is missing an id")
    if isinstance(session_id, str) and not session_id.strip():
        raise GatewayUnreachable("Session payload is missing an id")

    target = raw.get("targetDuration")
    if isinstance(target, bool) or not isinstance(target, (int, float)) or target <= 0:
        target = None

    context_id: Optional[str] = None
    context_label: Optional[str] = None
    time_block = raw.get("timeBlock")
    if isinstance(time_block, Mapping):
        priority = time_block.get("priority")
        if isinstance(priority, Mapping):
            if priority.get("id") is not None:
                context_id = str(priority["id"])
            context_label = _as_text(priority.get("title"))
        context_label = context_label or _as_text(time_block.get("title"))

    return ActiveSession(
        id=str(session_id),
        started_at=parse_timestamp(raw.get("startedAt")),
        target_duration_seconds=int(target) if target is not None else None,
        context_id=context_id,
        context_label=context_label,
    )


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into an aware datetime (naive means UTC)."""
    if not isinstance(value, str) or not value.strip():
        raise GatewayUnreachable("Session payload is missing startedAt")
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as error:
        raise GatewayUnreachable(f"Invalid startedAt timestamp: {value!r}") from error
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _unwrap_session(payload: Any) -> Any:
    if isinstance(payload, Mapping) and "session" in payload and "id" not in payload:
        return payload["session"]
    return payload


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, Mapping):
        return _as_text(body.get("message")) or _as_text(body.get("error")) or ""
    return ""


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
