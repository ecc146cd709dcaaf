"""Line renderer: parsed lines → Rich Text rows.

Each row is ``<line number> | <content>``. Content longer than the available
width is cut and ends in ``...``; rows never wrap. Highlighting is chosen per
line: JSON tokens, else timestamp + level color, else level color alone.

// [LAW:one-source-of-truth] Row geometry comes from gutter_width() and
// content_width(); nothing else computes column sizes.
"""

from __future__ import annotations

import re

from rich.text import Text

from log_summarizer.core.log_parser import ParsedLine
from log_summarizer.core.viewport import ViewWindow
from log_summarizer.tui.palette import LOG_COLORS, level_color

MIN_GUTTER_WIDTH = 4
SEPARATOR = " | "
ELLIPSIS = "..."

_JSON_TOKEN_RE = re.compile(
    r'("(?:\\.|[^"\\])*")(\s*:)?'  # string, optionally a key when a colon follows
    r"|(-?\d+\.?\d*)"  # number
    r"|(\btrue\b|\bfalse\b)"  # boolean
    r"|(\bnull\b)"  # null
    r"|([{}\[\],])",  # punctuation
    re.ASCII,
)


def gutter_width(total_lines: int) -> int:
    return max(MIN_GUTTER_WIDTH, len(str(total_lines)))


def content_width(width: int, total_lines: int) -> int:
    return width - gutter_width(total_lines) - len(SEPARATOR)


def truncate(raw: str, max_width: int) -> str:
    if len(raw) <= max_width:
        return raw
    return raw[:max(0, max_width - len(ELLIPSIS))] + ELLIPSIS


def highlight_json(text: str) -> Text:
    """Color JSON tokens in a single pass.

    Works on already-truncated text, so a cut token or unbalanced bracket is
    rendered as far as it goes; unmatched characters stay unstyled.
    """
    result = Text(no_wrap=True, end="")
    last = 0
    for match in _JSON_TOKEN_RE.finditer(text):
        if match.start() > last:
            result.append(text[last:match.start()])
        string, colon, number, boolean, null, punct = match.groups()
        if string is not None:
            style = LOG_COLORS["json_key"] if colon else LOG_COLORS["json_string"]
            result.append(string, style=style)
            if colon:
                result.append(colon)
        elif number is not None:
            result.append(number, style=LOG_COLORS["json_number"])
        elif boolean is not None:
            result.append(boolean, style=LOG_COLORS["json_boolean"])
        elif null is not None:
            result.append(null, style=LOG_COLORS["json_null"])
        else:
            result.append(punct, style=LOG_COLORS["json_punctuation"])
        last = match.end()
    if last < len(text):
        result.append(text[last:])
    return result


def render_line(
    line: ParsedLine,
    width: int,
    total_lines: int,
    show_line_numbers: bool = True,
) -> Text:
    gutter = gutter_width(total_lines)
    display = truncate(line.raw, content_width(width, total_lines))

    row = Text(no_wrap=True, end="")
    if show_line_numbers:
        number_style = "dim {}".format(LOG_COLORS["line_number"])
        row.append(str(line.line_number).rjust(gutter), style=number_style)
        row.append(SEPARATOR, style=number_style)

    if line.is_json:
        row.append_text(highlight_json(display))
    elif line.timestamp:
        # The remainder is sliced from the truncated text, not from raw.
        row.append(line.timestamp, style=LOG_COLORS["timestamp"])
        row.append(" ")
        row.append(display[len(line.timestamp):].strip(), style=level_color(line.level))
    else:
        row.append(display, style=level_color(line.level))
    return row


def render_window(window: ViewWindow, width: int, show_line_numbers: bool = True) -> Text:
    """Render the visible rows, padded with blank rows to a constant height."""
    rows = [
        render_line(line, width, window.total_lines, show_line_numbers)
        for line in window.lines
    ]
    rows.extend(Text(" ", end="") for _ in range(window.padding))
    return Text("\n", no_wrap=True, end="").join(rows)
