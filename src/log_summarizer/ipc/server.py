"""Unix-socket IPC server (canvas side).

Runs on whatever asyncio loop calls ``start()`` (Textual's, in the app), so
connection handling, message callbacks, and the session all share one thread.
Any number of controllers may connect, disconnect, and reconnect.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
import os
from typing import Any, Callable, Optional

from log_summarizer.ipc.protocol import (
    ControllerMessage,
    LineFramer,
    ProtocolError,
    decode_controller_message,
    encode,
)

logger = logging.getLogger(__name__)

_READ_SIZE = 65536
_CLOSE_TIMEOUT = 1.0
_connection_ids = itertools.count(1)


class ClientConnection:
    """One connected controller and its private inbound accumulator."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.id = next(_connection_ids)
        self.reader = reader
        self.writer = writer
        self.framer = LineFramer()

    async def write(self, data: bytes) -> bool:
        """Write and drain. Returns False if the peer is gone."""
        if self.writer.is_closing():
            return False
        try:
            self.writer.write(data)
            await self.writer.drain()
            return True
        except (ConnectionError, OSError) as e:
            logger.debug("client %s write failed: %s", self.id, e)
            return False

    def close(self) -> None:
        if not self.writer.is_closing():
            self.writer.close()

    def __repr__(self) -> str:
        return "ClientConnection(id={})".format(self.id)


MessageHandler = Callable[[ClientConnection, ControllerMessage], Any]


class IPCServer:
    def __init__(
        self,
        socket_path: str,
        on_message: MessageHandler,
        on_client_connect: Optional[Callable[[ClientConnection], Any]] = None,
        on_client_disconnect: Optional[Callable[[ClientConnection], Any]] = None,
        on_error: Optional[Callable[[Exception], Any]] = None,
    ) -> None:
        self.socket_path = socket_path
        self._on_message = on_message
        self._on_client_connect = on_client_connect
        self._on_client_disconnect = on_client_disconnect
        self._on_error = on_error
        self._server: Optional[asyncio.AbstractServer] = None
        self._clients: set[ClientConnection] = set()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    @property
    def is_serving(self) -> bool:
        return self._server is not None

    async def start(self) -> None:
        """Bind the socket, replacing any stale file at the path."""
        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)
        self._server = await asyncio.start_unix_server(self._handle_client, path=self.socket_path)
        logger.info("IPC server listening on %s", self.socket_path)

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        conn = ClientConnection(reader, writer)
        self._clients.add(conn)
        logger.info("controller connected (%s clients)", len(self._clients))
        if self._on_client_connect is not None:
            await _maybe_await(self._on_client_connect(conn))
        try:
            while True:
                chunk = await reader.read(_READ_SIZE)
                if not chunk:
                    break
                for line in conn.framer.feed(chunk):
                    await self._dispatch(conn, line)
        except (ConnectionError, OSError) as e:
            self._report(e)
        finally:
            self._clients.discard(conn)
            conn.close()
            logger.info("controller disconnected (%s clients)", len(self._clients))
            if self._on_client_disconnect is not None:
                await _maybe_await(self._on_client_disconnect(conn))

    async def _dispatch(self, conn: ClientConnection, line: bytes) -> None:
        try:
            msg = decode_controller_message(line)
        except ProtocolError as e:
            self._report(e)
            return
        await _maybe_await(self._on_message(conn, msg))

    def _report(self, exc: Exception) -> None:
        logger.warning("IPC error: %s", exc)
        if self._on_error is not None:
            self._on_error(exc)

    async def send(self, conn: ClientConnection, message: dict[str, Any]) -> bool:
        ok = await conn.write(encode(message))
        if not ok:
            self._clients.discard(conn)
        return ok

    async def broadcast(self, message: dict[str, Any]) -> int:
        """Send to every connected client. Returns how many received it."""
        data = encode(message)
        delivered = 0
        for conn in list(self._clients):
            if await conn.write(data):
                delivered += 1
            else:
                self._clients.discard(conn)
        logger.debug("broadcast %s to %s client(s)", message.get("type"), delivered)
        return delivered

    async def close(self) -> None:
        """Stop listening, drop clients, remove the socket file."""
        server, self._server = self._server, None
        for conn in list(self._clients):
            conn.close()
        self._clients.clear()
        if server is not None:
            server.close()
            try:
                await asyncio.wait_for(server.wait_closed(), timeout=_CLOSE_TIMEOUT)
            except (asyncio.TimeoutError, ConnectionError, OSError) as e:
                logger.debug("wait_closed: %r", e)
        if os.path.exists(self.socket_path):
            os.unlink(self.socket_path)


async def _maybe_await(result: Any) -> Any:
    if asyncio.iscoroutine(result):
        return await result
    return result
