import json
import unittest
from datetime import datetime, timedelta, timezone

import httpx

from session_gateway import (
    GatewayConfigurationError,
    GatewayRejected,
    GatewayUnreachable,
    HttpSessionGateway,
    SessionGatewayConfig,
)
from session_gateway.http_client import duration_minutes, parse_session, parse_timestamp

SESSION_JSON = {
    "id": 42,
    "startedAt": "2024-05-01T09:00:00Z",
    "targetDuration": 1500,
    "timeBlock": {
        "title": "Morning block",
        "priority": {"id": "p-7", "title": "Write report"},
    },
}


class _Recorder:
    def __init__(self, responder):
        self.requests: list[httpx.Request] = []
        self._responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)


class HttpSessionGatewayTests(unittest.IsolatedAsyncioTestCase):
    def _gateway(self, responder, *, api_token="secret-token") -> tuple[HttpSessionGateway, _Recorder]:
        recorder = _Recorder(responder)
        gateway = HttpSessionGateway(
            SessionGatewayConfig(
                base_url="https://focus.example.test",
                api_token=api_token,
            ),
            transport=httpx.MockTransport(recorder),
        )
        self.addAsyncCleanup(gateway.aclose)
        return gateway, recorder

    async def test_start_with_context_posts_to_priority_endpoint(self) -> None:
        gateway, recorder = self._gateway(
            lambda request: httpx.Response(201, json={"session": SESSION_JSON})
        )

        handle = await gateway.start_focus_session("p 7", 1500)

        request = recorder.requests[0]
        self.assertEqual("POST", request.method)
        self.assertEqual("/api/focus-sessions/priority/p%207/start", request.url.raw_path.decode())
        self.assertEqual({"durationMins": 25, "sessionType": "focus"}, json.loads(request.content))
        self.assertEqual("Bearer secret-token", request.headers["Authorization"])
        self.assertEqual("42", handle.id)
        self.assertEqual(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc), handle.started_at)

    async def test_start_without_context_uses_standalone_endpoint(self) -> None:
        gateway, recorder = self._gateway(
            lambda request: httpx.Response(200, json=SESSION_JSON),
            api_token=None,
        )

        await gateway.start_focus_session(None, 50)

        request = recorder.requests[0]
        self.assertEqual("/api/focus-sessions/standalone/start", request.url.path)
        self.assertEqual(1, json.loads(request.content)["durationMins"])
        self.assertNotIn("Authorization", request.headers)

    async def test_end_session_posts_flags(self) -> None:
        gateway, recorder = self._gateway(lambda request: httpx.Response(204))

        await gateway.end_session("42", completed=False, interrupted=True)

        request = recorder.requests[0]
        self.assertEqual("/api/focus-sessions/42/end", request.url.path)
        self.assertEqual({"completed": False, "interrupted": True}, json.loads(request.content))

    async def test_active_session_maps_context(self) -> None:
        gateway, recorder = self._gateway(lambda request: httpx.Response(200, json=SESSION_JSON))

        active = await gateway.get_active_session()

        self.assertEqual("GET", recorder.requests[0].method)
        self.assertEqual("/api/focus-sessions/active", recorder.requests[0].url.path)
        self.assertEqual("42", active.id)
        self.assertEqual(1500, active.target_duration_seconds)
        self.assertEqual("p-7", active.context_id)
        self.assertEqual("Write report", active.context_label)

    async def test_no_active_session_returns_none(self) -> None:
        for response in (
            httpx.Response(200, json=None),
            httpx.Response(200, json={"session": None}),
            httpx.Response(204),
        ):
            with self.subTest(status=response.status_code):
                gateway, _ = self._gateway(lambda request, response=response: response)
                self.assertIsNone(await gateway.get_active_session())

    async def test_client_error_is_rejected_with_server_message(self) -> None:
        gateway, _ = self._gateway(
            lambda request: httpx.Response(409, json={"message": "Session already active"})
        )

        with self.assertRaises(GatewayRejected) as context:
            await gateway.start_focus_session("p-7", 1500)

        self.assertEqual(409, context.exception.status_code)
        self.assertIn("Session already active", str(context.exception))

    async def test_server_error_is_unreachable(self) -> None:
        gateway, _ = self._gateway(lambda request: httpx.Response(503, text="maintenance"))

        with self.assertRaises(GatewayUnreachable):
            await gateway.get_active_session()

    async def test_transport_failure_is_unreachable(self) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        gateway, _ = self._gateway(refuse)

        with self.assertRaises(GatewayUnreachable):
            await gateway.end_session("42", completed=True, interrupted=False)

    async def test_timeout_is_unreachable(self) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        gateway, _ = self._gateway(slow)

        with self.assertRaises(GatewayUnreachable):
            await gateway.get_active_session()

    async def test_non_json_body_is_unreachable(self) -> None:
        gateway, _ = self._gateway(lambda request: httpx.Response(200, text="<html>"))

        with self.assertRaises(GatewayUnreachable):
            await gateway.get_active_session()

    async def test_start_response_without_session_is_unreachable(self) -> None:
        gateway, _ = self._gateway(lambda request: httpx.Response(200, json={"session": None}))

        with self.assertRaises(GatewayUnreachable):
            await gateway.start_focus_session(None, 1500)


class SessionPayloadTests(unittest.TestCase):
    def test_duration_minutes_rounds_and_floors_at_one(self) -> None:
        self.assertEqual(1, duration_minutes(1))
        self.assertEqual(25, duration_minutes(1500))
        self.assertEqual(3, duration_minutes(170))

    def test_label_falls_back_to_time_block_title(self) -> None:
        session = parse_session(
            {"id": "s", "startedAt": "2024-05-01T09:00:00", "timeBlock": {"title": "Admin"}}
        )

        self.assertIsNone(session.context_id)
        self.assertEqual("Admin", session.context_label)
        self.assertIsNone(session.target_duration_seconds)

    def test_timestamps_with_offsets_are_preserved(self) -> None:
        parsed = parse_timestamp("2024-05-01T11:00:00+02:00")

        self.assertEqual(timedelta(hours=2), parsed.utcoffset())
        self.assertEqual(datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc), parsed)

    def test_invalid_payloads_are_unreachable(self) -> None:
        for payload in (
            [],
            {"startedAt": "2024-05-01T09:00:00Z"},
            {"id": True, "startedAt": "2024-05-01T09:00:00Z"},
            {"id": "s"},
            {"id": "s", "startedAt": "yesterday"},
        ):
            with self.subTest(payload=payload):
                with self.assertRaises(GatewayUnreachable):
                    parse_session(payload)


class SessionGatewayConfigTests(unittest.TestCase):
    def test_rejects_invalid_base_url(self) -> None:
        with self.assertRaises(GatewayConfigurationError):
            SessionGatewayConfig(base_url="focus.example.test")

    def test_rejects_non_positive_timeout(self) -> None:
        with self.assertRaises(GatewayConfigurationError):
            SessionGatewayConfig(base_url="https://focus.example.test", timeout_seconds=0)


if __name__ == "__main__":
    unittest.main()
