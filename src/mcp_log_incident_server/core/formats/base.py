"""Parser interfaces and block boundary rules."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Protocol

from ..models import LogEntry


class LineDecoder(Protocol):
    """Decoder interface: return a structured LogEntry if the line is recognized, else None."""

    def decode(self, entry_id: int, line: str, *, now: datetime) -> LogEntry | None:
        """Decode a single physical line."""
        ...


class BoundaryPredicate(Protocol):
    """Decide whether a line starts a new structured entry.

    Used to resynchronize after a line that failed to decode.
    """

    def __call__(self, line: str) -> bool: ...


class LogTextParser(Protocol):
    """Parser interface: turn raw text into ordered entries."""

    def parse(self, text: str) -> list[LogEntry]:
        """Parse a whole log text."""
        ...


def json_object_boundary(line: str) -> bool:
    """Default boundary: the line looks like the start of a JSON object.

    A plain-text line that happens to begin with ``{`` also matches and ends the
    current block early.
    """
    return line.strip().startswith("{")


_ISO_PREFIX_RE = re.compile(r"^\s*\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}")


def iso_timestamp_boundary(line: str) -> bool:
    """Boundary for plain-text logs where each record starts with an ISO timestamp.

    Indented continuation lines (stack frames, wrapped messages) stay in the
    block of the record above them. JSON object lines also start a new block.
    """
    return bool(_ISO_PREFIX_RE.match(line)) or json_object_boundary(line)
