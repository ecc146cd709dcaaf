"""Tests for the centralized logging bootstrap."""

import logging
import os
from logging.handlers import RotatingFileHandler

import log_summarizer.io.logging_setup as logging_setup


def _handlers():
    return logging.getLogger(logging_setup.LOGGER_NAME).handlers


def _flush():
    for handler in _handlers():
        handler.flush()


def test_configure_installs_file_and_stderr_handlers(tmp_path):
    runtime = logging_setup.configure(canvas_id="unit")
    assert runtime.level_name == "INFO"
    assert runtime.canvas_id == "unit"
    assert runtime.file_path.startswith(str(tmp_path / "logs"))
    assert os.path.basename(runtime.file_path).startswith("canvas-unit-")
    kinds = {type(h) for h in _handlers()}
    assert RotatingFileHandler in kinds
    assert logging.StreamHandler in kinds


def test_tui_mode_skips_stderr():
    logging_setup.configure(to_stderr=False)
    assert [type(h) for h in _handlers()] == [RotatingFileHandler]


def test_configure_is_idempotent():
    first = logging_setup.configure(canvas_id="a")
    second = logging_setup.configure(canvas_id="b", role="spawn", to_stderr=False)
    assert second is first
    assert second.canvas_id == "a"


def test_env_overrides(tmp_path, monkeypatch):
    log_file = tmp_path / "explicit.log"
    monkeypatch.setenv("LOG_SUMMARIZER_LOG_FILE", str(log_file))
    monkeypatch.setenv("LOG_SUMMARIZER_LOG_LEVEL", "debug")
    runtime = logging_setup.configure(to_stderr=False)
    assert runtime.file_path == str(log_file)
    assert runtime.level == logging.DEBUG

    logging.getLogger("log_summarizer.core.session").debug("hello from session")
    _flush()
    assert "hello from session" in log_file.read_text()


def test_unknown_level_falls_back_to_info(monkeypatch):
    monkeypatch.setenv("LOG_SUMMARIZER_LOG_LEVEL", "chatty")
    assert logging_setup.configure(to_stderr=False).level == logging.INFO


def test_file_name_sanitized(tmp_path):
    runtime = logging_setup.configure(canvas_id="../x y", role="spawn")
    assert os.path.dirname(runtime.file_path) == str(tmp_path / "logs")
    assert os.path.basename(runtime.file_path).startswith("spawn-x-y-")


# ─── Canvas tagging ──────────────────────────────────────────────────────────


class TestCanvasTag:
    def test_records_carry_canvas_id(self):
        runtime = logging_setup.configure(canvas_id="log-7", to_stderr=False)
        logging.getLogger("log_summarizer.ipc.server").info("controller connected")
        _flush()
        with open(runtime.file_path, encoding="utf-8") as f:
            lines = [line for line in f if "controller connected" in line]
        assert len(lines) == 1
        assert "log_summarizer.ipc.server [log-7] controller connected" in lines[0]

    def test_stderr_lines_tagged(self, capsys):
        logging_setup.configure(canvas_id="abc")
        logging.getLogger("log_summarizer.cli").warning("careful")
        assert "[log_summarizer.cli] [abc] WARNING careful" in capsys.readouterr().err

    def test_missing_id_uses_placeholder(self):
        runtime = logging_setup.configure(to_stderr=False)
        assert runtime.canvas_id == logging_setup.NO_CANVAS

    def test_explicit_extra_wins(self):
        tag = logging_setup.CanvasTagFilter("outer")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "m", None, None)
        record.canvas_id = "inner"
        assert tag.filter(record)
        assert record.canvas_id == "inner"
