"""Canvas-side IPC facade.

Wraps IPCServer with the canvas's protocol behavior: ``ping`` is answered on
the spot, ``close`` and ``update`` go to the session owner's callbacks, and
each controller gets a ``ready`` as soon as it connects.

A socket that cannot be bound leaves the channel disabled rather than taking
the canvas down; every send is then a no-op.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from log_summarizer.ipc import protocol
from log_summarizer.ipc.protocol import (
    CloseMessage,
    ControllerMessage,
    PingMessage,
    UpdateMessage,
)
from log_summarizer.ipc.server import ClientConnection, IPCServer

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO = "summarize"


class CanvasChannel:
    def __init__(
        self,
        socket_path: Optional[str],
        scenario: str = DEFAULT_SCENARIO,
        on_close: Optional[Callable[[], Any]] = None,
        on_update: Optional[Callable[[Any], Any]] = None,
        on_connection_change: Optional[Callable[[bool], Any]] = None,
    ) -> None:
        self.socket_path = socket_path
        self.scenario = scenario
        self._on_close = on_close
        self._on_update = on_update
        self._on_connection_change = on_connection_change
        self._server: Optional[IPCServer] = None
        self.errors: list[str] = []

    @property
    def enabled(self) -> bool:
        return self._server is not None

    @property
    def is_connected(self) -> bool:
        return self._server is not None and self._server.client_count > 0

    async def start(self) -> bool:
        """Start listening. Returns False (and logs) when binding fails."""
        if not self.socket_path:
            logger.info("no socket path; running without IPC")
            return False
        server = IPCServer(
            self.socket_path,
            on_message=self._handle_message,
            on_client_connect=self._handle_connect,
            on_client_disconnect=self._handle_disconnect,
            on_error=self._handle_error,
        )
        try:
            await server.start()
        except OSError as e:
            logger.error("Failed to start IPC server on %s: %s", self.socket_path, e)
            return False
        self._server = server
        return True

    async def _handle_connect(self, conn: ClientConnection) -> None:
        self._notify_connection()
        if self._server is not None:
            await self._server.send(conn, protocol.ready(self.scenario))

    def _handle_disconnect(self, conn: ClientConnection) -> None:
        self._notify_connection()

    def _notify_connection(self) -> None:
        if self._on_connection_change is not None:
            self._on_connection_change(self.is_connected)

    def _handle_error(self, exc: Exception) -> None:
        self.errors.append(str(exc))

    async def _handle_message(self, conn: ClientConnection, msg: ControllerMessage) -> None:
        logger.debug("controller message: %s", msg)
        if isinstance(msg, PingMessage):
            await self.send(protocol.pong())
        elif isinstance(msg, CloseMessage):
            if self._on_close is not None:
                self._on_close()
        elif isinstance(msg, UpdateMessage):
            if self._on_update is not None:
                self._on_update(msg.config)

    async def send(self, message: dict[str, Any]) -> int:
        if self._server is None:
            return 0
        return await self._server.broadcast(message)

    async def send_selected(self, data: Any) -> int:
        return await self.send(protocol.selected(data))

    async def send_cancelled(self, reason: Optional[str] = None) -> int:
        return await self.send(protocol.cancelled(reason))

    async def send_error(self, message: str) -> int:
        return await self.send(protocol.error(message))

    async def close(self) -> None:
        server, self._server = self._server, None
        if server is not None:
            await server.close()
