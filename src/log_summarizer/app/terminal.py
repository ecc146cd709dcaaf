"""Terminal launch adapter — open or reuse a pane running the canvas.

Supported terminals: iTerm2 (split pane), tmux (split pane), Apple Terminal
(separate window; it has no splits). Each one is a TerminalHandle. The last
pane/session/window id is kept in a small state file so the next spawn can
reuse it, but only after checking it is still alive.

All libtmux usage is lazy-imported. AppleScript runs through ``osascript``.

// [LAW:locality-or-seam] All terminal automation is isolated here; the CLI
//   only calls detect_terminal() and spawn_canvas().
// [LAW:single-enforcer] launch() is the sole verify → reuse → create sequence.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Mapping, Optional, Protocol

from log_summarizer.ipc import protocol

logger = logging.getLogger(__name__)

REUSE_SETTLE_SECONDS = 0.15
TMUX_SPLIT_SIZE = "67%"
WINDOW_TITLE = "Log Summarizer"


class TerminalType(Enum):
    TMUX = "tmux"
    ITERM2 = "iterm2"
    APPLE_TERMINAL = "apple-terminal"
    NONE = "none"


_SUMMARIES: dict[TerminalType, str] = {
    TerminalType.TMUX: "tmux",
    TerminalType.ITERM2: "iTerm2",
    TerminalType.APPLE_TERMINAL: "Apple Terminal (new window mode)",
    TerminalType.NONE: "unsupported terminal",
}


@dataclass(frozen=True)
class TerminalEnvironment:
    in_tmux: bool
    in_iterm2: bool
    in_apple_terminal: bool
    terminal_type: TerminalType
    summary: str


def detect_terminal(environ: Optional[Mapping[str, str]] = None) -> TerminalEnvironment:
    env = os.environ if environ is None else environ
    in_tmux = bool(env.get("TMUX"))
    in_iterm2 = env.get("TERM_PROGRAM") == "iTerm.app" or bool(env.get("ITERM_SESSION_ID"))
    in_apple_terminal = env.get("TERM_PROGRAM") == "Apple_Terminal"

    # tmux wins: inside tmux the pane is what the user is looking at.
    terminal_type = TerminalType.NONE
    if in_tmux:
        terminal_type = TerminalType.TMUX
    elif in_iterm2:
        terminal_type = TerminalType.ITERM2
    elif in_apple_terminal:
        terminal_type = TerminalType.APPLE_TERMINAL

    return TerminalEnvironment(
        in_tmux=in_tmux,
        in_iterm2=in_iterm2,
        in_apple_terminal=in_apple_terminal,
        terminal_type=terminal_type,
        summary=_SUMMARIES[terminal_type],
    )


class LaunchError(RuntimeError):
    """No supported terminal could host the canvas."""


@dataclass(frozen=True)
class SpawnResult:
    method: str
    command: str = ""


# ─── Handle persistence ──────────────────────────────────────────────────────


class HandleStore:
    """Remembers the last pane/session/window id in a small state file."""

    def __init__(self, path: str) -> None:
        self.path = Path(path)

    def read(self) -> Optional[str]:
        try:
            value = self.path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        return value or None

    def save(self, handle: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(handle, encoding="utf-8")
        except OSError as e:
            _log("could not save handle to {}: {}".format(self.path, e))

    def clear(self) -> None:
        try:
            self.path.write_text("", encoding="utf-8")
        except OSError as e:
            _log("could not clear {}: {}".format(self.path, e))


class TerminalHandle(Protocol):
    name: str
    store: HandleStore

    def locate_existing(self) -> Optional[str]: ...

    def verify_alive(self, handle: str) -> bool: ...

    def create(self, command: str) -> Optional[str]: ...

    def reuse(self, handle: str, command: str) -> bool: ...


class _StoredHandle:
    """locate_existing() shared by every terminal: read, verify, forget if stale."""

    name = "terminal"

    def __init__(self, store: HandleStore) -> None:
        self.store = store

    def verify_alive(self, handle: str) -> bool:
        raise NotImplementedError

    def locate_existing(self) -> Optional[str]:
        handle = self.store.read()
        if handle is None:
            return None
        if self.verify_alive(handle):
            return handle
        _log("{}: stale handle {}".format(self.name, handle))
        self.store.clear()
        return None


def launch(handle: TerminalHandle, command: str) -> bool:
    """Reuse a verified live handle, else create a fresh one."""
    existing = handle.locate_existing()
    if existing is not None:
        if handle.reuse(existing, command):
            _log("{}: reused {}".format(handle.name, existing))
            return True
        _log("{}: reuse of {} failed, creating new".format(handle.name, existing))
        handle.store.clear()
    created = handle.create(command)
    if created is not None:
        _log("{}: created {}".format(handle.name, created))
    return created is not None


# ─── tmux ────────────────────────────────────────────────────────────────────


def is_tmux_available(env: Optional[TerminalEnvironment] = None) -> bool:
    """Check if tmux integration is possible (inside tmux + libtmux importable).

    Uses the given environment when present, otherwise the live $TMUX.
    """
    in_tmux = env.in_tmux if env is not None else bool(os.environ.get("TMUX"))
    if not in_tmux:
        return False
    try:
        import libtmux  # noqa: F401

        return True
    except ImportError:
        _log("tmux detected but libtmux is not importable")
        return False


class TmuxHandle(_StoredHandle):
    """Side-by-side split in the current tmux window."""

    name = "tmux"

    def __init__(self, store: Optional[HandleStore] = None, server=None) -> None:
        super().__init__(store or HandleStore(protocol.state_file_path("pane-id")))
        self._server = server

    def _get_server(self):
        if self._server is None:
            import libtmux

            self._server = libtmux.Server()
        return self._server

    def _cmd(self, *args: str):
        try:
            result = self._get_server().cmd(*args)
        except Exception as e:
            _log("tmux {} error: {}".format(args[0], e))
            return None
        if result.returncode != 0:
            _log("tmux {} failed: {}".format(args[0], " ".join(result.stderr or [])))
            return None
        return result

    def verify_alive(self, handle: str) -> bool:
        result = self._cmd("display-message", "-t", handle, "-p", "#{pane_id}")
        if result is None or not result.stdout:
            return False
        return result.stdout[0].strip() == handle

    def create(self, command: str) -> Optional[str]:
        args = ["split-window", "-h", "-l", TMUX_SPLIT_SIZE, "-P", "-F", "#{pane_id}"]
        our_pane = os.environ.get("TMUX_PANE")
        if our_pane:
            args += ["-t", our_pane]
        result = self._cmd(*args, command)
        if result is None or not result.stdout:
            return None
        pane_id = result.stdout[0].strip()
        if not pane_id:
            return None
        self.store.save(pane_id)
        return pane_id

    def reuse(self, handle: str, command: str) -> bool:
        if self._cmd("send-keys", "-t", handle, "C-c") is None:
            return False
        time.sleep(REUSE_SETTLE_SECONDS)
        return self._cmd("send-keys", "-t", handle, "clear && {}".format(command), "Enter") is not None


# ─── AppleScript terminals ───────────────────────────────────────────────────


def _applescript_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _osascript(script: str) -> Optional[str]:
    """Run AppleScript; stdout on success, None on any failure."""
    try:
        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as e:
        _log("osascript unavailable: {}".format(e))
        return None
    if result.returncode != 0:
        _log("osascript failed: {}".format(result.stderr.strip()))
        return None
    return result.stdout.strip()


class ITerm2Handle(_StoredHandle):
    """Vertical split of the current iTerm2 session."""

    name = "iterm2"

    def __init__(self, store: Optional[HandleStore] = None) -> None:
        super().__init__(store or HandleStore(protocol.state_file_path("iterm2-session")))

    def verify_alive(self, handle: str) -> bool:
        script = """
          tell application "iTerm2"
            repeat with w in windows
              repeat with t in tabs of w
                repeat with s in sessions of t
                  if unique ID of s is "{sid}" then
                    return "exists"
                  end if
                end repeat
              end repeat
            end repeat
            return "not_found"
          end tell
        """.format(sid=_applescript_string(handle))
        return _osascript(script) == "exists"

    def create(self, command: str) -> Optional[str]:
        script = """
          tell application "iTerm2"
            tell current session of current tab of current window
              set newSession to split vertically with same profile
              tell newSession
                write text "{cmd}"
              end tell
              return unique ID of newSession
            end tell
          end tell
        """.format(cmd=_applescript_string(command))
        session_id = _osascript(script)
        if not session_id:
            return None
        self.store.save(session_id)
        return session_id

    def reuse(self, handle: str, command: str) -> bool:
        script = """
          tell application "iTerm2"
            repeat with w in windows
              repeat with t in tabs of w
                repeat with s in sessions of t
                  if unique ID of s is "{sid}" then
                    tell s
                      write text (ASCII character 3)
                      delay {settle}
                      write text "clear && {cmd}"
                    end tell
                    return "success"
                  end if
                end repeat
              end repeat
            end repeat
            return "not_found"
          end tell
        """.format(
            sid=_applescript_string(handle),
            settle=REUSE_SETTLE_SECONDS,
            cmd=_applescript_string(command),
        )
        return _osascript(script) == "success"


class AppleTerminalHandle(_StoredHandle):
    """New Terminal.app window on the right half of the screen."""

    name = "apple-terminal"

    def __init__(self, store: Optional[HandleStore] = None) -> None:
        super().__init__(store or HandleStore(protocol.state_file_path("terminal-window")))

    def verify_alive(self, handle: str) -> bool:
        if not handle.isdigit():
            return False
        script = """
          tell application "Terminal"
            repeat with w in windows
              if id of w is {wid} then
                return "exists"
              end if
            end repeat
            return "not_found"
          end tell
        """.format(wid=handle)
        return _osascript(script) == "exists"

    def create(self, command: str) -> Optional[str]:
        script = """
          tell application "Terminal"
            do script "{cmd}"
            set canvasWindow to front window
            set windowId to id of canvasWindow
            tell application "Finder"
              set screenBounds to bounds of window of desktop
              set screenWidth to item 3 of screenBounds
              set screenHeight to item 4 of screenBounds
            end tell
            set bounds of canvasWindow to {{(screenWidth / 2), 0, screenWidth, screenHeight}}
            set custom title of canvasWindow to "{title}"
            return windowId
          end tell
        """.format(cmd=_applescript_string(command), title=WINDOW_TITLE)
        window_id = _osascript(script)
        if not window_id or not window_id.isdigit():
            return None
        self.store.save(window_id)
        return window_id

    def reuse(self, handle: str, command: str) -> bool:
        if not handle.isdigit():
            return False
        script = """
          tell application "Terminal"
            repeat with w in windows
              if id of w is {wid} then
                set frontmost of w to true
                do script "clear && {cmd}" in w
                return "success"
              end if
            end repeat
            return "not_found"
          end tell
        """.format(wid=handle, cmd=_applescript_string(command))
        return _osascript(script) == "success"


# ─── Spawning ────────────────────────────────────────────────────────────────


def build_show_command(
    session_id: str,
    config_json: Optional[str] = None,
    socket_path: Optional[str] = None,
) -> str:
    """Shell command that runs ``show`` for this session.

    Config goes through a file so it never needs shell escaping.
    """
    parts = [sys.executable, "-m", "log_summarizer", "show", "--id", session_id]
    if config_json:
        config_file = Path(protocol.config_file_path(session_id))
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(config_json, encoding="utf-8")
        parts += ["--config-file", str(config_file)]
    parts += ["--socket", socket_path or protocol.socket_path(session_id)]
    return shlex.join(parts)


def _candidate_handles(env: TerminalEnvironment) -> list[TerminalHandle]:
    # iTerm2 first, then tmux, then Apple Terminal.
    handles: list[TerminalHandle] = []
    if env.in_iterm2:
        handles.append(ITerm2Handle())
    if is_tmux_available(env):
        handles.append(TmuxHandle())
    if env.in_apple_terminal:
        handles.append(AppleTerminalHandle())
    return handles


def spawn_canvas(
    session_id: str,
    config_json: Optional[str] = None,
    socket_path: Optional[str] = None,
    env: Optional[TerminalEnvironment] = None,
    handles: Optional[list[TerminalHandle]] = None,
) -> SpawnResult:
    env = env or detect_terminal()
    command = build_show_command(session_id, config_json, socket_path)
    candidates = handles if handles is not None else _candidate_handles(env)
    for handle in candidates:
        if launch(handle, command):
            return SpawnResult(method=handle.name, command=command)
    raise LaunchError(
        "Log Summarizer requires iTerm2, tmux, or Apple Terminal. "
        "Please run in a supported terminal."
    )


def _log(msg: str) -> None:
    """Emit launch diagnostics through the centralized logger."""
    logger.info("[terminal] %s", msg)
