"""Centralized logging bootstrap for the log-summarizer runtime.

Every record emitted under the ``log_summarizer`` logger is tagged with the
canvas id it belongs to, so the files written by a ``show`` process and the
``spawn`` that launched it can be matched up afterwards.

// [LAW:single-enforcer] Logger handler wiring is enforced in this module only.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "log_summarizer"

LOG_DIR_ENV = "LOG_SUMMARIZER_LOG_DIR"
LOG_FILE_ENV = "LOG_SUMMARIZER_LOG_FILE"
LOG_LEVEL_ENV = "LOG_SUMMARIZER_LOG_LEVEL"
DEFAULT_LOG_DIR = "~/.local/share/log-summarizer/logs"
NO_CANVAS = "-"

_MAX_BYTES = 20 * 1024 * 1024
_BACKUPS = 5
_STDERR_FORMAT = "[%(name)s] [%(canvas_id)s] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(canvas_id)s] %(message)s"


@dataclass(frozen=True)
class LoggingRuntime:
    """Resolved runtime logging configuration."""

    role: str
    canvas_id: str
    level: int
    file_path: str
    to_stderr: bool

    @property
    def level_name(self) -> str:
        return logging.getLevelName(self.level)


class CanvasTagFilter(logging.Filter):
    """Stamps ``record.canvas_id`` unless the caller passed one via ``extra``."""

    def __init__(self, canvas_id: str) -> None:
        super().__init__()
        self.canvas_id = canvas_id

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "canvas_id"):
            record.canvas_id = self.canvas_id
        return True


_RUNTIME: LoggingRuntime | None = None


def _level_from_env() -> int:
    name = os.environ.get(LOG_LEVEL_ENV, "").strip().upper() or "INFO"
    level = logging.getLevelName(name)
    # getLevelName answers "Level CHATTY" for names it does not know.
    return level if isinstance(level, int) else logging.INFO


def _file_token(value: str) -> str:
    token = "".join(ch if (ch.isalnum() or ch in "-_") else "-" for ch in value)
    return token.strip("-_") or "canvas"


def _log_file_for(role: str, canvas_id: str) -> str:
    explicit = os.environ.get(LOG_FILE_ENV)
    if explicit:
        return explicit
    log_dir = Path(os.environ.get(LOG_DIR_ENV) or os.path.expanduser(DEFAULT_LOG_DIR))
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    name = "{}-{}-{}-{}.log".format(_file_token(role), _file_token(canvas_id), stamp, os.getpid())
    return str(log_dir / name)


def _handler(handler: logging.Handler, level: int, fmt: str, tag: CanvasTagFilter) -> logging.Handler:
    handler.setLevel(level)
    handler.addFilter(tag)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%dT%H:%M:%S"))
    return handler


def configure(
    canvas_id: Optional[str] = None,
    role: str = "canvas",
    to_stderr: bool = True,
) -> LoggingRuntime:
    """Configure the log_summarizer logger hierarchy for one canvas.

    ``role`` names the process (``canvas`` for ``show``, ``spawn`` for the
    launcher) and prefixes the log file name. The file handler is always
    installed; the stderr handler is skipped while the TUI owns the terminal.

    Idempotent: repeated calls return the originally configured runtime.
    """
    global _RUNTIME
    if _RUNTIME is not None:
        return _RUNTIME

    tag = canvas_id or NO_CANVAS
    level = _level_from_env()
    file_path = _log_file_for(role, tag)
    Path(file_path).parent.mkdir(parents=True, exist_ok=True)

    tag_filter = CanvasTagFilter(tag)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()
    if to_stderr:
        logger.addHandler(_handler(logging.StreamHandler(), level, _STDERR_FORMAT, tag_filter))
    file_handler = RotatingFileHandler(file_path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
    logger.addHandler(_handler(file_handler, level, _FILE_FORMAT, tag_filter))

    # Third-party loggers stay at warning+.
    root = logging.getLogger()
    if root.level > logging.WARNING:
        root.setLevel(logging.WARNING)
    logging.captureWarnings(True)

    _RUNTIME = LoggingRuntime(
        role=role,
        canvas_id=tag,
        level=level,
        file_path=file_path,
        to_stderr=to_stderr,
    )
    logger.debug("logging to %s at %s", file_path, _RUNTIME.level_name)
    return _RUNTIME


def reset() -> None:
    """Drop configured handlers so configure() can run again (tests)."""
    global _RUNTIME
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    _RUNTIME = None
