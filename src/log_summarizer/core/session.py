"""Canvas session state machine.

Owns everything the canvas mutates: the log buffer, the pending paste
accumulator, the detected format, scroll state, and the one-way
paste → review mode switch. The TUI is a projection of this object; the
only I/O done here is writing the submission file.

// [LAW:single-enforcer] flush() is the only path from typed/pasted input into
// the buffer, and the only place format detection runs.
// [LAW:dataflow-not-control-flow] How a session ends is a SessionOutcome value;
// the caller broadcasts outcome.message and exits with outcome.exit_code.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from log_summarizer.core.config import CanvasConfig, ConfigError
from log_summarizer.core.log_parser import LogFormat, count_all_lines, detect_format
from log_summarizer.core.viewport import (
    Layout,
    ScrollState,
    ViewWindow,
    compute_layout,
    scroll_label,
    scroll_percent,
    visible_window,
)
from log_summarizer.ipc import protocol

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Log Summarizer"
NO_LOGS_REASON = "No logs to submit"
USER_CANCELLED_REASON = "User cancelled"

# Fragments of terminal mouse-report escapes (e.g. "[<35;12;7M").
_MOUSE_NOISE_RE = re.compile(r"^[<\[\];Mm\d]+$", re.ASCII)


class SessionMode(str, Enum):
    PASTE = "paste"
    REVIEW = "review"


@dataclass(frozen=True)
class SessionOutcome:
    message: dict[str, Any]
    exit_code: int = 0
    file_path: Optional[str] = None

    @property
    def kind(self) -> str:
        return self.message["type"]


def is_mouse_noise(text: str) -> bool:
    return bool(_MOUSE_NOISE_RE.match(text))


class CanvasSession:
    def __init__(
        self,
        session_id: str,
        config: Optional[CanvasConfig] = None,
        width: int = 120,
        height: int = 40,
    ) -> None:
        self.session_id = session_id
        self.config = config or CanvasConfig.default()
        self.mode = SessionMode.PASTE
        self.detected_format = LogFormat.UNKNOWN
        self.layout: Layout = compute_layout(width, height)
        self.scroll = ScrollState(offset=0, viewport_height=self.layout.viewport_height)
        self.outcome: Optional[SessionOutcome] = None
        self._content = ""
        self._lines: list[str] = [""]
        self._pending = ""

    # ─── Derived state ─────────────────────────────────────────────────

    @property
    def content(self) -> str:
        return self._content

    @property
    def lines(self) -> list[str]:
        return self._lines

    @property
    def total_lines(self) -> int:
        return len(self._lines)

    @property
    def has_content(self) -> bool:
        return bool(self._content.strip())

    @property
    def pending(self) -> str:
        return self._pending

    @property
    def finished(self) -> bool:
        return self.outcome is not None

    @property
    def title(self) -> str:
        return self.config.title or DEFAULT_TITLE

    def window(self) -> ViewWindow:
        return visible_window(self._lines, self.scroll, self.detected_format)

    def scroll_label(self) -> str:
        return scroll_label(self.scroll, self.total_lines)

    def scroll_percent(self) -> int:
        return scroll_percent(self.scroll, self.total_lines)

    def header_text(self) -> str:
        if self.mode == SessionMode.PASTE:
            return "Waiting for paste..."
        return "{} lines | {}%".format(self.total_lines, self.scroll_percent())

    # ─── Input ─────────────────────────────────────────────────────────

    def feed(self, text: str) -> bool:
        """Queue typed or pasted text. Returns False if it was dropped."""
        if self.finished or not text or is_mouse_noise(text):
            return False
        self._pending += text
        return True

    def flush(self) -> bool:
        """Move pending input into the buffer. Returns True if anything moved."""
        chunk, self._pending = self._pending, ""
        if not chunk or self.finished:
            return False

        self._set_content(self._content + chunk)
        if self.has_content:
            self.detected_format = detect_format(self._content)
            self.mode = SessionMode.REVIEW
        logger.debug(
            "flushed %d chars: %d lines, format=%s",
            len(chunk), self.total_lines, self.detected_format.value,
        )
        return True

    def _set_content(self, content: str) -> None:
        lines = content.split("\n")
        max_lines = self.config.max_lines
        if len(lines) > max_lines:
            dropped = len(lines) - max_lines
            lines = lines[-max_lines:]
            content = "\n".join(lines)
            logger.info("buffer over %d lines; dropped %d oldest", max_lines, dropped)
        self._content = content
        self._lines = lines
        self.scroll.clamp(self.total_lines)

    def resize(self, width: int, height: int) -> None:
        self.layout = compute_layout(width, height)
        self.scroll.viewport_height = self.layout.viewport_height
        self.scroll.clamp(self.total_lines)

    def scroll_by(self, delta: int) -> None:
        if self.mode != SessionMode.REVIEW:
            return
        self.scroll.scroll_by(delta, self.total_lines)

    def page(self, direction: int) -> None:
        if self.mode != SessionMode.REVIEW:
            return
        self.scroll.page(direction, self.total_lines)

    def apply_config(self, update: Any) -> bool:
        """Apply an ``update`` message's config. Bad updates are logged and ignored."""
        if not isinstance(update, dict):
            logger.warning("ignoring config update that is not an object: %r", update)
            return False
        try:
            self.config = self.config.merged(update)
        except ConfigError as e:
            logger.warning("ignoring config update: %s", e)
            return False
        logger.info("config updated: %s", self.config)
        return True

    # ─── Endings ───────────────────────────────────────────────────────

    def cancel(self, reason: str = USER_CANCELLED_REASON) -> SessionOutcome:
        if self.finished:
            return self.outcome
        return self._finish(SessionOutcome(protocol.cancelled(reason)))

    def submit(self) -> SessionOutcome:
        """Write the buffer to the session's log file and build the result."""
        if self.finished:
            return self.outcome
        self.flush()
        if not self.has_content:
            return self.cancel(NO_LOGS_REASON)

        path = protocol.log_file_path(self.session_id)
        data = self._content.encode("utf-8")
        try:
            Path(path).write_bytes(data)
        except OSError as e:
            logger.error("could not write %s: %s", path, e)
            message = "Failed to write log file {}: {}".format(path, e)
            return self._finish(SessionOutcome(protocol.error(message), exit_code=1))

        result = {
            "logFilePath": path,
            "lineCount": count_all_lines(self._content),
            "detectedFormat": self.detected_format.value,
            "sizeBytes": len(data),
        }
        logger.info("submitted %s", result)
        return self._finish(SessionOutcome(protocol.selected(result), file_path=path))

    def _finish(self, outcome: SessionOutcome) -> SessionOutcome:
        self.outcome = outcome
        return outcome
