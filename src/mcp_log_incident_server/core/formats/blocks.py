"""Block-aware text parser.

Structured lines become one entry each. A line that fails to decode opens a
plain-text block (typically a stack trace) that absorbs following lines until
the boundary predicate signals the next structured entry.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from ..models import LogEntry, LogLevel
from ..timestamps import format_iso, utc_now
from .base import BoundaryPredicate, LineDecoder, json_object_boundary
from .pino import PinoJsonDecoder

_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True, slots=True)
class BlockLogParser:
    """Parse raw log text into ordered entries (ids assigned from 0)."""

    decoder: LineDecoder = field(default_factory=PinoJsonDecoder)
    boundary: BoundaryPredicate = json_object_boundary
    now: Callable[[], datetime] = utc_now

    def parse(self, text: str) -> list[LogEntry]:
        """Parse a whole text blob. Never raises on malformed content."""
        lines = _LINE_SPLIT_RE.split(text)
        now = self.now()
        out: list[LogEntry] = []

        i = 0
        while i < len(lines):
            line = lines[i]
            if not line.strip():
                i += 1
                continue

            entry = self.decoder.decode(len(out), line, now=now)
            if entry is not None:
                out.append(entry)
                i += 1
                continue

            block = [line]
            j = i + 1
            while j < len(lines) and not self.boundary(lines[j]):
                block.append(lines[j])
                j += 1
            out.append(_text_entry(len(out), block, now=now))
            i = j

        return out


def _text_entry(entry_id: int, block: list[str], *, now: datetime) -> LogEntry:
    """Keep the block verbatim in `raw`; `message` drops trailing blank lines."""
    raw = "\n".join(block)
    body = list(block)
    while not body[-1].strip():
        body.pop()
    return LogEntry(
        id=entry_id,
        level=LogLevel.INFO,
        timestamp=format_iso(now),
        message="\n".join(body),
        data={"message": raw},
        raw=raw,
        is_json=False,
    )
