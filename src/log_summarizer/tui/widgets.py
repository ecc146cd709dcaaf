"""Canvas widgets: title bar, log panel, status bar.

Each widget is a pure projection of the CanvasSession.
// [LAW:single-enforcer] update_display() is the sole render entry per widget.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Group
from rich.table import Table
from rich.text import Text
from textual.widgets import Static

from log_summarizer.core.session import CanvasSession, SessionMode
from log_summarizer.tui.input_modes import FOOTER_HINTS
from log_summarizer.tui.palette import FORMAT_LABELS, LOG_COLORS, MODE_BORDER_COLORS
from log_summarizer.tui.rendering import render_window


def _split_row(left: Text, right: Text) -> Table:
    grid = Table.grid(expand=True)
    grid.add_column(justify="left", no_wrap=True)
    grid.add_column(justify="right", no_wrap=True)
    grid.add_row(left, right)
    return grid


def title_row(session: CanvasSession) -> tuple[Text, Text]:
    left = Text(session.title, style="bold {}".format(LOG_COLORS["title"]))
    right = Text(session.header_text(), style="dim {}".format(LOG_COLORS["status_bar"]))
    return left, right


def status_row(session: CanvasSession) -> tuple[Text, Text]:
    muted = "dim {}".format(LOG_COLORS["status_bar"])
    left = Text(FOOTER_HINTS[session.mode], style=muted)
    right = Text(style=muted)
    if session.mode == SessionMode.REVIEW:
        right.append(FORMAT_LABELS[session.detected_format], style=LOG_COLORS["scroll_indicator"])
        right.append(" | ")
        right.append("{} lines".format(session.total_lines))
        right.append(" | ")
        right.append(session.scroll_label())
    return left, right


class TitleBar(Static):
    ALLOW_SELECT = False
    DEFAULT_CSS = """
    TitleBar {
        height: 1;
        margin-bottom: 1;
    }
    """

    def update_display(self, session: CanvasSession) -> None:
        self.update(_split_row(*title_row(session)))


class LogPanel(Static):
    """Bordered log area. Border color follows the session mode."""

    ALLOW_SELECT = False
    DEFAULT_CSS = """
    LogPanel {
        height: 1fr;
        border: round yellow;
        padding: 1 2;
    }
    """

    def update_display(self, session: CanvasSession) -> None:
        self.set_class(session.mode == SessionMode.REVIEW, "-review")
        self.styles.border = ("round", MODE_BORDER_COLORS[session.mode])
        height = session.scroll.viewport_height

        if session.mode == SessionMode.PASTE and not session.content:
            placeholder = Group(
                Text("Paste your logs here", style="bold yellow", justify="center"),
                Text("(Cmd+V or Ctrl+Shift+V)", style="dim", justify="center"),
                Text(" "),
                Text("Press Enter to submit | Esc to cancel", style="dim", justify="center"),
            )
            self.update(Align.center(placeholder, vertical="middle", height=height))
            return

        if not session.has_content:
            empty = Text("No logs yet", style="dim", justify="center")
            self.update(Align.center(empty, vertical="middle", height=height))
            return

        self.update(render_window(session.window(), session.layout.content_width))


class StatusBar(Static):
    ALLOW_SELECT = False
    DEFAULT_CSS = """
    StatusBar {
        height: 1;
    }
    """

    def update_display(self, session: CanvasSession) -> None:
        self.update(_split_row(*status_row(session)))
