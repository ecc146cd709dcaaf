"""Wire protocol between the canvas and its controller.

Every message is one compact JSON object on one line, terminated by ``\\n``.
Canvas → controller: ``ready``, ``selected``, ``cancelled``, ``error``, ``pong``.
Controller → canvas: ``close``, ``update``, ``ping``.

// [LAW:one-source-of-truth] Socket/log/config paths are derived from the
// session id here and nowhere else.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Union

TMPDIR_ENV = "LOG_SUMMARIZER_TMPDIR"
DEFAULT_TMPDIR = "/tmp"
FILE_PREFIX = "log-summarizer"
_ERROR_SNIPPET = 200


class ProtocolError(ValueError):
    """An inbound line that is not a usable controller message."""


class CanvasMessageType(str, Enum):
    READY = "ready"
    SELECTED = "selected"
    CANCELLED = "cancelled"
    ERROR = "error"
    PONG = "pong"


class ControllerMessageType(str, Enum):
    CLOSE = "close"
    UPDATE = "update"
    PING = "ping"


# ─── Canvas → controller ─────────────────────────────────────────────────────


def ready(scenario: str) -> dict[str, Any]:
    return {"type": CanvasMessageType.READY.value, "scenario": scenario}


def selected(data: Any) -> dict[str, Any]:
    return {"type": CanvasMessageType.SELECTED.value, "data": data}


def cancelled(reason: str | None = None) -> dict[str, Any]:
    # A missing reason is omitted from the wire, not sent as null.
    msg: dict[str, Any] = {"type": CanvasMessageType.CANCELLED.value}
    if reason is not None:
        msg["reason"] = reason
    return msg


def error(message: str) -> dict[str, Any]:
    return {"type": CanvasMessageType.ERROR.value, "message": message}


def pong() -> dict[str, Any]:
    return {"type": CanvasMessageType.PONG.value}


def encode(message: dict[str, Any]) -> bytes:
    return (json.dumps(message, separators=(",", ":"), ensure_ascii=False) + "\n").encode("utf-8")


# ─── Controller → canvas ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class CloseMessage:
    type: ControllerMessageType = ControllerMessageType.CLOSE


@dataclass(frozen=True)
class UpdateMessage:
    config: Any = None
    type: ControllerMessageType = field(default=ControllerMessageType.UPDATE)


@dataclass(frozen=True)
class PingMessage:
    type: ControllerMessageType = ControllerMessageType.PING


ControllerMessage = Union[CloseMessage, UpdateMessage, PingMessage]


def decode_controller_message(line: str | bytes) -> ControllerMessage:
    """Parse one complete line. Raises ProtocolError for anything unusable."""
    if isinstance(line, bytes):
        try:
            line = line.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError("Failed to parse message: not UTF-8") from e
    try:
        data = json.loads(line)
    except (json.JSONDecodeError, RecursionError) as e:
        raise ProtocolError("Failed to parse message: {}".format(line[:_ERROR_SNIPPET])) from e
    if not isinstance(data, dict):
        raise ProtocolError("Failed to parse message: {}".format(line[:_ERROR_SNIPPET]))

    kind = data.get("type")
    if kind == ControllerMessageType.CLOSE.value:
        return CloseMessage()
    if kind == ControllerMessageType.UPDATE.value:
        return UpdateMessage(config=data.get("config"))
    if kind == ControllerMessageType.PING.value:
        return PingMessage()
    # Unrecognized types go to the error callback like malformed lines.
    raise ProtocolError("Unknown message type: {!r}".format(kind))


class LineFramer:
    """Reassembles newline-delimited lines from arbitrary read chunks.

    Bytes after the last newline are kept until more data arrives. Splitting
    happens on bytes so multi-byte characters cut across reads survive.
    """

    def __init__(self) -> None:
        self._buffer = b""

    @property
    def remainder(self) -> bytes:
        return self._buffer

    def feed(self, chunk: bytes) -> list[bytes]:
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split(b"\n")
        return [line for line in lines if line.strip()]


# ─── Path conventions ────────────────────────────────────────────────────────


def _tmpdir() -> Path:
    return Path(os.environ.get(TMPDIR_ENV) or DEFAULT_TMPDIR)


def socket_path(session_id: str) -> str:
    return str(_tmpdir() / "{}-{}.sock".format(FILE_PREFIX, session_id))


def log_file_path(session_id: str) -> str:
    return str(_tmpdir() / "{}-{}.log".format(FILE_PREFIX, session_id))


def config_file_path(session_id: str) -> str:
    return str(_tmpdir() / "{}-config-{}.json".format(FILE_PREFIX, session_id))


def state_file_path(name: str) -> str:
    """Small per-terminal state files used by the launch adapter."""
    return str(_tmpdir() / "{}-{}".format(FILE_PREFIX, name))
