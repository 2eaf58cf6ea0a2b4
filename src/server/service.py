from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import Server, ServerConnection
from websockets.datastructures import Headers
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO

from .config import HEALTHZ_PATH, INDEX_PATH, ROOT_PATH, UIServerConfig
from .events import StickyEventStore, make_event, parse_command

CommandHandler = Callable[[str, dict[str, Any]], Awaitable[Any]]


class UIServer:
    """Websocket bridge that streams focus state and forwards client commands.

    Runs on the caller's asyncio loop, the same loop that drives the engine.
    """

    def __init__(
        self,
        config: UIServerConfig,
        *,
        command_handler: Optional[CommandHandler] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self._config = config
        self._command_handler = command_handler
        self._logger = logger or logging.getLogger("ui_server")
        self._server: Optional[Server] = None
        self._connected_clients: set[ServerConnection] = set()
        self._sticky_events = StickyEventStore()
        self._pending: set[asyncio.Task[None]] = set()
        self._index_html = (
            Path(config.index_file).read_bytes() if config.serves_index else None
        )

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def is_running(self) -> bool:
        return self._server is not None

    @property
    def client_count(self) -> int:
        return len(self._connected_clients)

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        self._command_handler = handler

    async def start(self) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._server = await websockets.serve(
            self._handler,
            host=self._config.host,
            port=self._config.port,
            process_request=self._process_request,
            logger=self._logger,
        )
        self._logger.info(
            "UI server running at http://%s:%d (websocket: %s)",
            self._config.host,
            self._config.port,
            self._config.websocket_path,
        )

    async def stop(self, timeout_seconds: float = 5.0) -> None:
        server = self._server
        if server is None:
            return
        self._server = None

        await self._close_clients()
        server.close()
        try:
            await asyncio.wait_for(server.wait_closed(), timeout_seconds)
        except asyncio.TimeoutError:
            self._logger.error("UI server did not stop within %.1fs", timeout_seconds)
        if self._pending:
            await asyncio.gather(*tuple(self._pending), return_exceptions=True)

    def publish(self, event_type: str, **payload: Any) -> None:
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)
        if not self.is_running or not self._connected_clients:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._logger.debug("No running loop; %s event kept for replay only", event_type)
            return
        task = loop.create_task(self._broadcast(message))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _handler(self, websocket: ServerConnection) -> None:
        request_path = (
            urlsplit(websocket.request.path).path
            if websocket.request is not None
            else ""
        )
        if request_path != self._config.websocket_path:
            await websocket.close(code=1008, reason="Invalid websocket path")
            return

        self._connected_clients.add(websocket)
        self._logger.info("Client connected: %s", websocket.remote_address)
        try:
            await websocket.send(
                make_event(EVENT_HELLO, message="Focus websocket connected")
            )
            for sticky_message in self._sticky_events.snapshot():
                await websocket.send(sticky_message)
            async for message in websocket:
                self._logger.debug("Received from UI: %s", message)
                # A pending start must not hold back later commands.
                task = asyncio.create_task(self._dispatch_from(websocket, message))
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)
        except websockets.exceptions.ConnectionClosed:
            self._logger.info("Client disconnected: %s", websocket.remote_address)
        finally:
            self._connected_clients.discard(websocket)

    async def _dispatch_from(self, websocket: ServerConnection, raw: str | bytes) -> None:
        try:
            await self._dispatch(websocket, raw)
        except websockets.exceptions.ConnectionClosed:
            self._logger.debug("Client left before command reply: %s", websocket.remote_address)

    async def _dispatch(self, websocket: ServerConnection, raw: str | bytes) -> None:
        try:
            command, arguments = parse_command(raw)
        except ValueError as error:
            await websocket.send(make_event(EVENT_ERROR, message=str(error)))
            return

        if self._command_handler is None:
            await websocket.send(
                make_event(EVENT_ERROR, message="Commands are not accepted")
            )
            return

        try:
            await self._command_handler(command, arguments)
        except Exception as error:
            self._logger.error("Command %s failed: %s", command, error, exc_info=True)
            await websocket.send(
                make_event(EVENT_ERROR, message=f"Command {command} failed: {error}")
            )

    async def _process_request(
        self,
        connection: ServerConnection,
        request: Request,
    ) -> Response | None:
        del connection  # Unused in static routing.
        path = urlsplit(request.path).path

        if path == self._config.websocket_path:
            return None

        if path in (ROOT_PATH, INDEX_PATH) and self._index_html is not None:
            return self._response(
                200,
                "OK",
                self._index_html,
                "text/html; charset=utf-8",
            )

        if path == HEALTHZ_PATH:
            return self._response(
                200,
                "OK",
                b"ok\n",
                "text/plain; charset=utf-8",
            )

        return self._response(
            404,
            "Not Found",
            b"not found\n",
            "text/plain; charset=utf-8",
        )

    def _response(
        self,
        status_code: int,
        reason_phrase: str,
        body: bytes,
        content_type: str,
    ) -> Response:
        headers = Headers()
        headers["Content-Type"] = content_type
        headers["Content-Length"] = str(len(body))
        headers["Cache-Control"] = "no-store"
        return Response(status_code, reason_phrase, headers, body)

    async def _close_clients(self) -> None:
        if not self._connected_clients:
            return

        tasks = [
            client.close(code=1001, reason="Server shutting down")
            for client in tuple(self._connected_clients)
        ]
        await asyncio.gather(*tasks, return_exceptions=True)
        self._connected_clients.clear()

    async def _broadcast(self, message: str) -> None:
        if not self._connected_clients:
            return

        clients = tuple(self._connected_clients)
        disconnected = []
        tasks = [client.send(message) for client in clients]
        results = await asyncio.gather(*tasks, return_exceptions=True)
        for client, result in zip(clients, results):
            if isinstance(result, Exception):
                disconnected.append(client)
                self._logger.warning("Failed to send message to client: %s", result)

        for client in disconnected:
            self._connected_clients.discard(client)
