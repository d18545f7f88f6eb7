"""Pino-style JSON-lines decoder."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from ..models import LogEntry, LogLevel
from ..timestamps import epoch_ms_to_iso, format_iso

_STRING_LEVELS = {
    "ERROR": LogLevel.ERROR,
    "FATAL": LogLevel.ERROR,
    "WARN": LogLevel.WARN,
    "WARNING": LogLevel.WARN,
    "DEBUG": LogLevel.DEBUG,
    "TRACE": LogLevel.DEBUG,
}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_level(value: Any) -> LogLevel:
    """Map a numeric or string severity to a LogLevel (default INFO).

    Numeric thresholds: >=50 ERROR, >=40 WARN, >=20 DEBUG.
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if value >= 50:
            return LogLevel.ERROR
        if value >= 40:
            return LogLevel.WARN
        if value >= 20:
            return LogLevel.DEBUG
        return LogLevel.INFO
    if isinstance(value, str):
        return _STRING_LEVELS.get(value.upper(), LogLevel.INFO)
    return LogLevel.INFO


def _first(obj: dict[str, Any], keys: Sequence[str]) -> Any:
    for k in keys:
        val = obj.get(k)
        if val is not None:
            return val
    return None


@dataclass(frozen=True, slots=True)
class PinoJsonDecoder:
    """Decode one JSON object per line (Pino and similar structured loggers)."""

    time_keys: Sequence[str] = ("time", "timestamp", "ts")
    msg_keys: Sequence[str] = ("msg", "message")
    level_key: str = "level"
    default_message: str = "No message"

    def decode(self, entry_id: int, line: str, *, now: datetime) -> LogEntry | None:
        """Return a structured entry when the line is a JSON object."""
        try:
            obj = json.loads(line, parse_constant=_reject_constant)
        except ValueError:
            return None
        if not isinstance(obj, dict):
            return None

        return LogEntry(
            id=entry_id,
            level=parse_level(obj.get(self.level_key)),
            timestamp=self._timestamp(obj, now=now),
            message=self._message(obj),
            data=obj,
            raw=line,
            is_json=True,
        )

    def _timestamp(self, obj: dict[str, Any], *, now: datetime) -> str:
        ts = _first(obj, self.time_keys)
        if ts is None:
            return format_iso(now)
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            # Pino writes epoch milliseconds.
            try:
                return epoch_ms_to_iso(ts)
            except (OverflowError, ValueError):
                return str(ts)
        return ts if isinstance(ts, str) else json.dumps(ts)

    def _message(self, obj: dict[str, Any]) -> str:
        msg = _first(obj, self.msg_keys)
        if msg is None:
            return self.default_message
        return msg if isinstance(msg, str) else json.dumps(msg, ensure_ascii=False)
