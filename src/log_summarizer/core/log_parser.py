"""Log format detection and per-line classification.

Pure functions only. Nothing here raises on odd input: a line that is not
JSON, carries no timestamp, or names no level simply comes back with the
corresponding field empty.

// [LAW:one-source-of-truth] TIMESTAMP_PATTERNS order is the priority order for
// both format detection and timestamp extraction.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

FORMAT_SAMPLE_SIZE = 50

_JSON_MAJORITY = 0.5
_SYSLOG_MAJORITY = 0.5
_TIMESTAMP_MAJORITY = 0.3


class LogFormat(str, Enum):
    """Overall format of a pasted buffer. Values are the wire strings."""

    JSON = "json"
    SYSLOG = "syslog"
    GENERIC = "generic"
    UNKNOWN = "unknown"


class LogLevel(str, Enum):
    """Severity detected on a single line."""

    ERROR = "error"
    WARN = "warn"
    INFO = "info"
    DEBUG = "debug"
    TRACE = "trace"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ParsedLine:
    """One classified line, rebuilt every time the visible window renders."""

    raw: str
    line_number: int
    level: LogLevel
    timestamp: Optional[str] = None
    message: Optional[str] = None
    is_json: bool = False


_SYSLOG_RE = re.compile(r"^[A-Z][a-z]{2}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2}", re.ASCII)

TIMESTAMP_PATTERNS: tuple[re.Pattern[str], ...] = (
    # ISO 8601: 2024-01-15T10:30:45.123Z
    re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})?", re.ASCII),
    # Apache / combined: 15/Jan/2024:10:30:45 +0000
    re.compile(r"^\d{2}/\w{3}/\d{4}:\d{2}:\d{2}:\d{2}\s*[+-]\d{4}", re.ASCII),
    # Syslog: Jan 15 10:30:45
    _SYSLOG_RE,
    # Bracketed: [2024-01-15 10:30:45]
    re.compile(r"^\[\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}\]", re.ASCII),
    # Bracketed unix epoch: [1705312245]
    re.compile(r"^\[\d{10}\]", re.ASCII),
    # Space separated: 2024-01-15 10:30:45
    re.compile(r"^\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2}", re.ASCII),
)

# First match wins, so error-class tokens must stay first.
LEVEL_PATTERNS: tuple[tuple[LogLevel, re.Pattern[str]], ...] = (
    (LogLevel.ERROR, re.compile(r"\b(ERROR|ERR|FATAL|CRITICAL|CRIT|FAILURE|FAILED)\b", re.I | re.ASCII)),
    (LogLevel.WARN, re.compile(r"\b(WARN|WARNING)\b", re.I | re.ASCII)),
    (LogLevel.INFO, re.compile(r"\b(INFO|NOTICE)\b", re.I | re.ASCII)),
    (LogLevel.DEBUG, re.compile(r"\b(DEBUG|DBG)\b", re.I | re.ASCII)),
    (LogLevel.TRACE, re.compile(r"\b(TRACE|VERBOSE)\b", re.I | re.ASCII)),
)

_LEADING_LEVEL_RE = re.compile(
    r"^\s*\[?(ERROR|WARNING|WARN|INFO|DEBUG|TRACE)\]?\s*", re.I | re.ASCII
)


def _reject_constant(name: str):
    raise ValueError("non-standard JSON constant {}".format(name))


def is_json_text(text: str) -> bool:
    """True when ``text`` is one complete, strictly valid JSON value."""
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def _as_lines(sample: str | Iterable[str]) -> Iterable[str]:
    if isinstance(sample, str):
        return sample.split("\n")
    return sample


def detect_format(sample: str | Iterable[str]) -> LogFormat:
    """Classify a buffer from its first FORMAT_SAMPLE_SIZE non-empty lines.

    The result depends only on the content of those lines: JSON wins above
    half the sample, then syslog above half, then any recognizable timestamp
    above 30%.
    """
    json_count = 0
    syslog_count = 0
    timestamp_count = 0
    total = 0

    for line in _as_lines(sample):
        trimmed = line.strip()
        if not trimmed:
            continue
        total += 1

        if trimmed[0] in "{[" and is_json_text(trimmed):
            json_count += 1
        if _SYSLOG_RE.match(trimmed):
            syslog_count += 1
        if any(pattern.match(trimmed) for pattern in TIMESTAMP_PATTERNS):
            timestamp_count += 1

        if total >= FORMAT_SAMPLE_SIZE:
            break

    if total == 0:
        return LogFormat.UNKNOWN
    if json_count > total * _JSON_MAJORITY:
        return LogFormat.JSON
    if syslog_count > total * _SYSLOG_MAJORITY:
        return LogFormat.SYSLOG
    if timestamp_count > total * _TIMESTAMP_MAJORITY:
        return LogFormat.GENERIC
    return LogFormat.UNKNOWN


def detect_level(line: str) -> LogLevel:
    for level, pattern in LEVEL_PATTERNS:
        if pattern.search(line):
            return level
    return LogLevel.UNKNOWN


def extract_timestamp(line: str) -> Optional[str]:
    """Return the leading timestamp verbatim (brackets included), if any."""
    for pattern in TIMESTAMP_PATTERNS:
        match = pattern.match(line)
        if match:
            return match.group(0)
    return None


def _extract_message(raw: str, timestamp: Optional[str]) -> str:
    message = raw
    if timestamp:
        # Searched, not anchored: the first occurrence is stripped.
        start = raw.find(timestamp)
        message = raw[start + len(timestamp):].strip()
    return _LEADING_LEVEL_RE.sub("", message, count=1)


def parse_line(raw: str, line_number: int, fmt: LogFormat) -> ParsedLine:
    """Classify one line. ``raw`` is carried through untouched."""
    trimmed = raw.strip()
    is_json = False
    if fmt == LogFormat.JSON or trimmed.startswith("{"):
        is_json = is_json_text(trimmed)

    timestamp = extract_timestamp(raw)
    return ParsedLine(
        raw=raw,
        line_number=line_number,
        level=detect_level(raw),
        timestamp=timestamp,
        message=_extract_message(raw, timestamp),
        is_json=is_json,
    )


def parse_lines(lines: Iterable[str], start_offset: int, fmt: LogFormat) -> list[ParsedLine]:
    """Parse a slice of the buffer; line numbers are global and 1-based."""
    return [
        parse_line(line, start_offset + idx + 1, fmt)
        for idx, line in enumerate(lines)
    ]


def count_lines(content: str) -> int:
    """Number of non-empty lines."""
    return sum(1 for line in content.split("\n") if line.strip())


def count_all_lines(content: str) -> int:
    """Number of lines including blank ones (a trailing newline adds one)."""
    return len(content.split("\n"))
