"""Scroll state and the visible slice of the log buffer.

// [LAW:single-enforcer] ScrollState.clamp() is the only place offsets are bounded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from log_summarizer.core.log_parser import LogFormat, ParsedLine, parse_lines

MAX_VIEWER_WIDTH = 120

# Rows/columns taken by chrome around the log rows: title + margin + status
# bar, and the panel's border and padding.
_HEADER_ROWS = 2
_FOOTER_ROWS = 1
_PANEL_ROWS = 4
_PANEL_COLUMNS = 6
_SIDE_MARGIN = 4


@dataclass
class ScrollState:
    offset: int = 0
    viewport_height: int = 1

    def max_scroll(self, total_lines: int) -> int:
        return max(0, total_lines - self.viewport_height)

    def clamp(self, total_lines: int) -> None:
        self.offset = min(max(0, self.offset), self.max_scroll(total_lines))

    def scroll_by(self, delta: int, total_lines: int) -> None:
        self.offset += delta
        self.clamp(total_lines)

    def page(self, direction: int, total_lines: int) -> None:
        """Move a full viewport up (direction < 0) or down (direction > 0)."""
        step = self.viewport_height if direction > 0 else -self.viewport_height
        self.scroll_by(step, total_lines)


@dataclass(frozen=True)
class Layout:
    viewer_width: int
    content_width: int
    viewport_height: int


def compute_layout(width: int, height: int) -> Layout:
    """Derive panel and viewport sizes from the terminal size."""
    viewer_width = max(1, min(width - _SIDE_MARGIN, MAX_VIEWER_WIDTH))
    viewport_height = max(1, height - _HEADER_ROWS - _FOOTER_ROWS - _PANEL_ROWS)
    return Layout(
        viewer_width=viewer_width,
        content_width=max(1, viewer_width - _PANEL_COLUMNS),
        viewport_height=viewport_height,
    )


@dataclass(frozen=True)
class ViewWindow:
    """Parsed rows currently on screen plus blank rows to keep height fixed."""

    lines: list[ParsedLine] = field(default_factory=list)
    padding: int = 0
    total_lines: int = 0


def visible_window(lines: Sequence[str], state: ScrollState, fmt: LogFormat) -> ViewWindow:
    start = state.offset
    visible = lines[start:start + state.viewport_height]
    parsed = parse_lines(visible, start, fmt)
    return ViewWindow(
        lines=parsed,
        padding=max(0, state.viewport_height - len(parsed)),
        total_lines=len(lines),
    )


def scroll_label(state: ScrollState, total_lines: int) -> str:
    if total_lines > state.viewport_height:
        end = min(state.offset + state.viewport_height, total_lines)
        return "{}-{} of {}".format(state.offset + 1, end, total_lines)
    return "{} lines".format(total_lines)


def scroll_percent(state: ScrollState, total_lines: int) -> int:
    max_scroll = state.max_scroll(total_lines)
    if max_scroll <= 0:
        return 100
    # Halves round up (round() would round to even).
    return int(state.offset / max_scroll * 100 + 0.5)
