"""Semantic color table for the canvas.

Only the distinction between categories matters; the concrete colors are
presentation constants. Values are Rich color names.
"""

from log_summarizer.core.log_parser import LogFormat, LogLevel
from log_summarizer.core.session import SessionMode

LOG_COLORS: dict[str, str] = {
    # Log levels
    "error": "red",
    "warn": "yellow",
    "info": "cyan",
    "debug": "bright_black",
    "trace": "bright_black",
    "unknown": "default",
    # Structure
    "timestamp": "green",
    "line_number": "bright_black",
    # JSON tokens
    "json_key": "magenta",
    "json_string": "green",
    "json_number": "yellow",
    "json_boolean": "cyan",
    "json_null": "bright_black",
    "json_punctuation": "white",
    # Chrome
    "border": "bright_black",
    "title": "white",
    "status_bar": "bright_black",
    "scroll_indicator": "cyan",
}

MODE_BORDER_COLORS: dict[SessionMode, str] = {
    SessionMode.PASTE: "yellow",
    SessionMode.REVIEW: "green",
}

FORMAT_LABELS: dict[LogFormat, str] = {
    LogFormat.JSON: "JSON",
    LogFormat.SYSLOG: "Syslog",
    LogFormat.GENERIC: "Generic",
    LogFormat.UNKNOWN: "Text",
}


def level_color(level: LogLevel) -> str:
    return LOG_COLORS.get(level.value, LOG_COLORS["unknown"])
