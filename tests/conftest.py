"""Pytest configuration and shared fixtures for log-summarizer tests."""

import shutil
import tempfile

import pytest

import log_summarizer.io.logging_setup


# ---------------------------------------------------------------------------
# Filesystem isolation
# ---------------------------------------------------------------------------

@pytest.fixture
def short_tmpdir():
    """Short temp dir; unix socket paths are limited to ~104 bytes."""
    path = tempfile.mkdtemp(prefix="ls")
    yield path
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_tmpdir(short_tmpdir, monkeypatch):
    """Point socket/log/state paths at a per-test directory."""
    monkeypatch.setenv("LOG_SUMMARIZER_TMPDIR", short_tmpdir)
    monkeypatch.delenv("LOG_SUMMARIZER_MAX_LINES", raising=False)
    return short_tmpdir


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path, monkeypatch):
    """Send runtime logs to tmp_path and undo configure() after each test."""
    monkeypatch.setenv("LOG_SUMMARIZER_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("LOG_SUMMARIZER_LOG_FILE", raising=False)
    monkeypatch.delenv("LOG_SUMMARIZER_LOG_LEVEL", raising=False)
    log_summarizer.io.logging_setup.reset()
    yield
    log_summarizer.io.logging_setup.reset()
