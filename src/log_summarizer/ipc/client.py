"""Minimal asyncio controller client.

Used by the test-suite and usable by Python controllers that spawn a canvas
and wait for its result.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

from log_summarizer.ipc.protocol import encode


class ControllerClient:
    def __init__(self, socket_path: str) -> None:
        self.socket_path = socket_path
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    async def connect(self) -> None:
        self._reader, self._writer = await asyncio.open_unix_connection(self.socket_path)

    async def send(self, message: dict[str, Any]) -> None:
        await self.send_raw(encode(message))

    async def send_raw(self, data: bytes) -> None:
        """Write bytes as-is (partial lines included)."""
        if self._writer is None:
            raise RuntimeError("not connected")
        self._writer.write(data)
        await self._writer.drain()

    async def receive(self, timeout: float = 2.0) -> dict[str, Any]:
        """Read the next message. Raises EOFError when the canvas hung up."""
        if self._reader is None:
            raise RuntimeError("not connected")
        line = await asyncio.wait_for(self._reader.readline(), timeout=timeout)
        if not line:
            raise EOFError("canvas closed the connection")
        return json.loads(line)

    async def close(self) -> None:
        writer, self._writer = self._writer, None
        self._reader = None
        if writer is not None:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    async def __aenter__(self) -> "ControllerClient":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
