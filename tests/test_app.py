"""Textual in-process tests for LogSummarizerApp.

Paste, review, scrolling, submit and cancel through the real key dispatcher,
plus the controller round trip over a live socket.
"""

import asyncio
import json
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from log_summarizer.core.config import CanvasConfig
from log_summarizer.core.log_parser import LogFormat
from log_summarizer.core.session import SessionMode
from log_summarizer.ipc import protocol
from log_summarizer.ipc.client import ControllerClient
from log_summarizer.tui.widgets import LogPanel, status_row, title_row
from tests.harness.app_runner import paste, run_app

pytestmark = pytest.mark.textual


async def _wait_until(predicate, attempts=100):
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0.02)


class TestPasteMode:
    async def test_placeholder_shown_initially(self):
        async with run_app() as (pilot, app):
            assert app.session.mode == SessionMode.PASTE
            assert app.session.content == ""
            assert title_row(app.session)[1].plain == "Waiting for paste..."
            assert not app.query_one(LogPanel).has_class("-review")

    async def test_paste_switches_to_review(self):
        async with run_app() as (pilot, app):
            await paste(pilot, app, '{"a":1}\n{"b":2}\n{"c":3}')
            assert app.session.mode == SessionMode.REVIEW
            assert app.session.detected_format == LogFormat.JSON
            assert app.query_one(LogPanel).has_class("-review")

    async def test_typed_characters_are_buffered(self):
        async with run_app() as (pilot, app):
            await pilot.press("h", "i")
            await pilot.pause(0.15)
            assert app.session.content == "hi"

    async def test_enter_on_empty_buffer_adds_newline(self):
        async with run_app() as (pilot, app):
            await pilot.press("enter")
            await pilot.pause(0.15)
            assert app.session.content == "\n"
            assert app.is_running


class TestReviewMode:
    async def test_arrow_and_page_keys_scroll(self):
        async with run_app(size=(100, 30)) as (pilot, app):
            await paste(pilot, app, "\n".join("line {}".format(i) for i in range(200)))
            height = app.session.scroll.viewport_height

            await pilot.press("down")
            await pilot.pause()
            assert app.session.scroll.offset == 1
            await pilot.press("pagedown")
            await pilot.pause()
            assert app.session.scroll.offset == 1 + height
            await pilot.press("pageup", "pageup")
            await pilot.pause()
            assert app.session.scroll.offset == 0
            await pilot.press("up")
            await pilot.pause()
            assert app.session.scroll.offset == 0

    async def test_status_bar_shows_format_and_range(self):
        async with run_app(size=(100, 30)) as (pilot, app):
            await paste(pilot, app, "\n".join("2024-01-15 10:30:{:02d} ok".format(i) for i in range(60)))
            left, right = status_row(app.session)
            assert app.session.detected_format == LogFormat.GENERIC
            assert right.plain == "Generic | 60 lines | 1-23 of 60"
            assert "Enter: submit" in left.plain

    async def test_config_title_in_header(self):
        async with run_app(config=CanvasConfig(title="Prod API")) as (pilot, app):
            assert app.session.title == "Prod API"
            assert title_row(app.session)[0].plain == "Prod API"


class TestEndings:
    async def test_submit_writes_file_and_exits(self):
        async with run_app(session_id="sub") as (pilot, app):
            await paste(pilot, app, "a\nb\nc")
            await pilot.press("enter")
            await _wait_until(lambda: not app.is_running)
        path = protocol.log_file_path("sub")
        assert Path(path).read_bytes() == b"a\nb\nc"
        assert app.return_code == 0
        assert app.return_value == {
            "type": "selected",
            "data": {
                "logFilePath": path,
                "lineCount": 3,
                "detectedFormat": "unknown",
                "sizeBytes": 5,
            },
        }

    async def test_escape_cancels(self):
        async with run_app(session_id="esc") as (pilot, app):
            await paste(pilot, app, "something")
            await pilot.press("escape")
            await _wait_until(lambda: not app.is_running)
        assert app.return_value == {"type": "cancelled", "reason": "User cancelled"}
        assert app.return_code == 0
        assert not os.path.exists(protocol.log_file_path("esc"))


class TestControllerRoundTrip:
    async def test_controller_receives_ready_and_selection(self):
        sock = protocol.socket_path("rt")
        async with run_app(session_id="rt", socket_path=sock) as (pilot, app):
            async with ControllerClient(sock) as client:
                assert await client.receive() == {"type": "ready", "scenario": "summarize"}
                await client.send({"type": "ping"})
                assert await client.receive() == {"type": "pong"}

                await paste(pilot, app, "ERROR one\nINFO two")
                await pilot.press("enter")
                msg = await client.receive()
                await _wait_until(lambda: not app.is_running)
        assert msg["type"] == "selected"
        assert msg["data"]["lineCount"] == 2
        assert not os.path.exists(sock)

    async def test_controller_receives_cancellation(self):
        sock = protocol.socket_path("cx")
        async with run_app(session_id="cx", socket_path=sock) as (pilot, app):
            async with ControllerClient(sock) as client:
                await client.receive()
                await pilot.press("escape")
                msg = await client.receive()
                await _wait_until(lambda: not app.is_running)
        assert msg == {"type": "cancelled", "reason": "User cancelled"}
        assert app.return_code == 0

    async def test_write_failure_reported_to_controller(self):
        sock = protocol.socket_path("wf")
        async with run_app(session_id="wf", socket_path=sock) as (pilot, app):
            async with ControllerClient(sock) as client:
                await client.receive()
                await paste(pilot, app, "a\nb")
                with patch("log_summarizer.core.session.Path.write_bytes", side_effect=OSError("disk full")):
                    await pilot.press("enter")
                    msg = await client.receive()
                await _wait_until(lambda: not app.is_running)
        assert msg["type"] == "error"
        assert "disk full" in msg["message"]
        assert app.return_code == 0

    async def test_update_retitles_canvas(self):
        sock = protocol.socket_path("up")
        async with run_app(session_id="up", socket_path=sock) as (pilot, app):
            async with ControllerClient(sock) as client:
                await client.receive()
                await client.send({"type": "update", "config": {"title": "Renamed"}})
                await _wait_until(lambda: app.session.title == "Renamed")
            assert app.session.title == "Renamed"

    async def test_close_exits_without_result(self):
        sock = protocol.socket_path("cl")
        async with run_app(session_id="cl", socket_path=sock) as (pilot, app):
            async with ControllerClient(sock) as client:
                await client.receive()
                await client.send({"type": "close"})
                await _wait_until(lambda: not app.is_running)
        assert app.return_value is None
        assert not os.path.exists(sock)


def test_selected_message_is_single_json_line():
    data = protocol.encode(protocol.selected({"lineCount": 1}))
    assert json.loads(data.decode("utf-8")) == {"type": "selected", "data": {"lineCount": 1}}
