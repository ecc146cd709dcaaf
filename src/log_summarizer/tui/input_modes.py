"""Mode-based key dispatch.

All keyboard input routes through the app's on_key using the current
session mode. Textual BINDINGS are not used; on_key is the sole dispatcher.
Keys not bound here fall through to paste handling.
"""

from log_summarizer.core.session import SessionMode

_COMMON_KEYS: dict[str, str] = {
    "escape": "cancel",
    "enter": "submit",
}

# [LAW:one-source-of-truth] Key→action mapping per mode.
MODE_KEYMAP: dict[SessionMode, dict[str, str]] = {
    SessionMode.PASTE: dict(_COMMON_KEYS),
    SessionMode.REVIEW: {
        **_COMMON_KEYS,
        "up": "scroll_up_line",
        "down": "scroll_down_line",
        "pageup": "page_up",
        "pagedown": "page_down",
    },
}

# Hint text shown at the left of the status bar.
FOOTER_HINTS: dict[SessionMode, str] = {
    SessionMode.PASTE: "Paste logs (Cmd+V) then Enter to submit",
    SessionMode.REVIEW: "Scroll: arrows/PgUp/PgDn | Enter: submit | Esc: cancel",
}


def action_for(mode: SessionMode, key: str) -> str | None:
    return MODE_KEYMAP[mode].get(key)
