"""App lifecycle management for Textual in-process tests.

Creates LogSummarizerApp instances wired for testing and manages run_test() lifecycle.
State isolation: every call creates a fresh session and app.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator

from textual import events
from textual.pilot import Pilot

from log_summarizer.core.config import CanvasConfig
from log_summarizer.tui.app import LogSummarizerApp


@asynccontextmanager
async def run_app(
    *,
    size: tuple[int, int] = (120, 40),
    session_id: str = "test",
    config: CanvasConfig | None = None,
    socket_path: str | None = None,
) -> AsyncIterator[tuple[Pilot, LogSummarizerApp]]:
    """Create and run a LogSummarizerApp in test mode.

    Yields (pilot, app) tuple. With socket_path=None the IPC channel stays
    disabled and every send is a no-op.

    Args:
        size: Terminal dimensions (width, height).
        session_id: Canvas id; decides the submission file name.
        config: Optional canvas config.
        socket_path: Optional unix socket path for a live IPC channel.
    """
    app = LogSummarizerApp(session_id, config=config, socket_path=socket_path)

    async with app.run_test(size=size) as pilot:
        # Ensure on_mount processing (including channel start) has completed
        await pilot.pause()
        yield pilot, app


async def paste(pilot: Pilot, app: LogSummarizerApp, text: str) -> None:
    """Deliver a bracketed paste and wait past the debounce window."""
    app.on_paste(events.Paste(text))
    await pilot.pause(0.15)
    await pilot.pause()
