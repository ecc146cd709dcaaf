"""Canvas configuration passed by the controller.

The controller hands over a JSON object (``--config`` on the command line or
an ``update`` message over IPC). Recognized keys are ``title`` and
``maxLines``; anything else is ignored.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

DEFAULT_MAX_LINES = 10000
MAX_LINES_ENV = "LOG_SUMMARIZER_MAX_LINES"


class ConfigError(ValueError):
    """Raised for config JSON that cannot be used."""


def _default_max_lines() -> int:
    raw = os.environ.get(MAX_LINES_ENV, "")
    try:
        value = int(raw)
    except ValueError:
        return DEFAULT_MAX_LINES
    return value if value > 0 else DEFAULT_MAX_LINES


def _coerce_max_lines(value: Any) -> int:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError("maxLines must be a positive integer, got {!r}".format(value))
    if isinstance(value, float) and not value.is_integer():
        raise ConfigError("maxLines must be a positive integer, got {!r}".format(value))
    if value <= 0:
        raise ConfigError("maxLines must be a positive integer, got {!r}".format(value))
    return int(value)


@dataclass(frozen=True)
class CanvasConfig:
    title: Optional[str] = None
    max_lines: int = DEFAULT_MAX_LINES

    @classmethod
    def default(cls) -> "CanvasConfig":
        return cls(max_lines=_default_max_lines())

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "CanvasConfig":
        return cls.default().merged(data or {})

    @classmethod
    def from_json(cls, text: str | None) -> "CanvasConfig":
        """Parse the ``--config`` argument. Empty or missing text gives defaults."""
        if text is None or not text.strip():
            return cls.default()
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError("config is not valid JSON: {}".format(e)) from e
        if not isinstance(data, dict):
            raise ConfigError("config must be a JSON object")
        return cls.from_mapping(data)

    def merged(self, data: Mapping[str, Any]) -> "CanvasConfig":
        """Return a copy with the recognized keys of ``data`` applied."""
        changes: dict[str, Any] = {}
        if "title" in data:
            title = data["title"]
            changes["title"] = None if title is None else str(title)
        if "maxLines" in data and data["maxLines"] is not None:
            changes["max_lines"] = _coerce_max_lines(data["maxLines"])
        return replace(self, **changes)

