"""Main TUI application using Textual.

// [LAW:locality-or-seam] Thin coordinator: CanvasSession holds state,
//   CanvasChannel talks to the controller, widgets render, input_modes maps keys.
// [LAW:single-enforcer] on_key is the sole key dispatcher; _finish() is the
//   sole exit path once the session has an outcome.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from textual import events
from textual.app import App, ComposeResult
from textual.css.query import NoMatches

from log_summarizer.core.config import CanvasConfig
from log_summarizer.core.debounce import Debouncer
from log_summarizer.core.session import CanvasSession, SessionOutcome
from log_summarizer.ipc.channel import DEFAULT_SCENARIO, CanvasChannel
from log_summarizer.ipc.protocol import CanvasMessageType
from log_summarizer.tui.input_modes import action_for
from log_summarizer.tui.widgets import LogPanel, StatusBar, TitleBar

logger = logging.getLogger(__name__)


class LogSummarizerApp(App):
    """Paste-and-submit log canvas."""

    CSS = """
    Screen {
        layout: vertical;
        align: center top;
    }
    """

    def __init__(
        self,
        session_id: str,
        config: Optional[CanvasConfig] = None,
        socket_path: Optional[str] = None,
        scenario: str = DEFAULT_SCENARIO,
    ) -> None:
        super().__init__()
        self.session = CanvasSession(session_id, config)
        self.channel = CanvasChannel(
            socket_path,
            scenario=scenario,
            on_close=self._on_controller_close,
            on_update=self._on_controller_update,
        )
        self._debouncer = Debouncer(self._flush_paste, self.set_timer)
        self._finishing = False

    # ─── Widget accessors ──────────────────────────────────────────────

    def _query_safe(self, widget_type):
        try:
            return self.query_one(widget_type)
        except NoMatches:
            return None

    # ─── Lifecycle ─────────────────────────────────────────────────────

    def compose(self) -> ComposeResult:
        yield TitleBar(id="title-bar")
        yield LogPanel(id="log-panel")
        yield StatusBar(id="status-bar")

    async def on_mount(self) -> None:
        self.session.resize(self.size.width, self.size.height)
        await self.channel.start()
        self.refresh_view()

    async def on_unmount(self) -> None:
        self._debouncer.cancel()
        await self.channel.close()

    def on_resize(self, event: events.Resize) -> None:
        self.session.resize(event.size.width, event.size.height)
        self.refresh_view()

    def refresh_view(self) -> None:
        """Re-project the session onto the widgets."""
        session = self.session
        for widget_type in (TitleBar, LogPanel, StatusBar):
            widget = self._query_safe(widget_type)
            if widget is None:
                continue
            widget.styles.width = session.layout.viewer_width
            widget.update_display(session)

    # ─── Input ─────────────────────────────────────────────────────────

    async def on_key(self, event: events.Key) -> None:
        if self._finishing:
            event.prevent_default()
            return

        action_name = action_for(self.session.mode, event.key)
        if action_name:
            event.prevent_default()
            await self.run_action(action_name)
            return

        # Anything else printable is paste content.
        if event.is_printable and event.character:
            event.prevent_default()
            self._handle_paste_input(event.character)

    def on_paste(self, event: events.Paste) -> None:
        if self._finishing:
            return
        self._handle_paste_input(event.text)

    def _handle_paste_input(self, text: str) -> None:
        if self.session.feed(text):
            self._debouncer.trigger()

    def _flush_paste(self) -> None:
        if self.session.flush():
            self.refresh_view()

    # ─── Actions ───────────────────────────────────────────────────────

    async def action_cancel(self) -> None:
        await self._finish(self.session.cancel())

    async def action_quit(self) -> None:
        await self.action_cancel()

    async def action_submit(self) -> None:
        # Enter inside a still-arriving paste burst is part of the paste.
        if not self.session.has_content or self._debouncer.pending:
            self._handle_paste_input("\n")
            return
        await self._finish(self.session.submit())

    def action_scroll_up_line(self) -> None:
        self.session.scroll_by(-1)
        self.refresh_view()

    def action_scroll_down_line(self) -> None:
        self.session.scroll_by(1)
        self.refresh_view()

    def action_page_up(self) -> None:
        self.session.page(-1)
        self.refresh_view()

    def action_page_down(self) -> None:
        self.session.page(1)
        self.refresh_view()

    # ─── Controller ────────────────────────────────────────────────────

    def _on_controller_close(self) -> None:
        logger.info("controller requested close")
        self.call_later(self._close_from_controller)

    async def _close_from_controller(self) -> None:
        if self._finishing:
            return
        self._finishing = True
        self._debouncer.cancel()
        await self.channel.close()
        self.exit()

    def _on_controller_update(self, config: Any) -> None:
        self.call_later(self._apply_update, config)

    def _apply_update(self, config: Any) -> None:
        if self.session.apply_config(config):
            self.refresh_view()

    # ─── Exit ──────────────────────────────────────────────────────────

    async def _finish(self, outcome: SessionOutcome) -> None:
        """Report the outcome to the controller, then exit unconditionally."""
        if self._finishing:
            return
        self._finishing = True
        self._debouncer.cancel()

        delivered = await self._report_outcome(outcome)
        return_code = outcome.exit_code
        # A write failure a controller heard about is reported, not fatal.
        if outcome.kind == CanvasMessageType.ERROR.value and delivered:
            return_code = 0
        logger.info(
            "session finished: %s (delivered to %d, exit %d)",
            outcome.kind, delivered, return_code,
        )
        await self.channel.close()
        message = outcome.message.get("message") if return_code else None
        self.exit(outcome.message, return_code=return_code, message=message)

    async def _report_outcome(self, outcome: SessionOutcome) -> int:
        if outcome.kind == CanvasMessageType.SELECTED.value:
            return await self.channel.send_selected(outcome.message["data"])
        if outcome.kind == CanvasMessageType.CANCELLED.value:
            return await self.channel.send_cancelled(outcome.message.get("reason"))
        return await self.channel.send_error(outcome.message["message"])
