"""Log loading, parsing and filtering utilities.

This module is the main integration point that reads log files and returns
normalized entries.
"""

from __future__ import annotations

import gzip
import json
from collections.abc import Iterable, Sequence
from contextlib import asynccontextmanager
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .formats import BlockLogParser, LogTextParser
from .models import LogEntry, LogLevel


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a log file for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


def default_parser() -> LogTextParser:
    """Default parser: Pino JSON lines with `{`-prefix block resynchronization."""
    return BlockLogParser()


def parse_log_text(text: str, *, parser: LogTextParser | None = None) -> list[LogEntry]:
    """Parse raw log text into ordered entries."""
    parser = parser or default_parser()
    return parser.parse(text)


async def read_log_text(
    log_path: str | Path,
    *,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> str:
    """Read a whole log file as text."""
    path = Path(log_path)
    if not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        return await f.read()


async def load_entries(
    log_path: str | Path,
    *,
    parser: LogTextParser | None = None,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> list[LogEntry]:
    """Read and parse a log file."""
    text = await read_log_text(log_path, encoding=encoding, decode_errors=decode_errors)
    return parse_log_text(text, parser=parser)


def parse_levels(levels: Sequence[str] | None) -> list[LogLevel] | None:
    """Parse user-supplied severity names into LogLevel enums."""
    if not levels:
        return None
    out: list[LogLevel] = []
    for s in levels:
        name = s.strip().upper()
        if not name:
            continue
        if name == "WARNING":
            name = "WARN"
        try:
            out.append(LogLevel[name])
        except KeyError as e:
            valid = ", ".join(level.value for level in LogLevel)
            raise ValueError(
                f"Unknown log level '{s}'. Valid values: {valid}. "
                "Tip: levels is case-insensitive (e.g., 'error', 'WARN')."
            ) from e
    return out or None


def _searchable_text(entry: LogEntry) -> str:
    others = [
        v if isinstance(v, str) else json.dumps(v, ensure_ascii=False, default=str)
        for k, v in entry.data.items()
        if k not in ("message", "level", "timestamp")
    ]
    return " ".join([entry.message, entry.level.value, entry.timestamp, *others]).lower()


def filter_entries(
    entries: Iterable[LogEntry],
    *,
    query: str | None = None,
    levels: Iterable[LogLevel] | None = None,
) -> list[LogEntry]:
    """Filter entries by level allowlist and a case-insensitive search query."""
    allowed = set(levels) if levels is not None else None
    needle = query.strip().lower() if query else ""

    out: list[LogEntry] = []
    for e in entries:
        if allowed is not None and e.level not in allowed:
            continue
        if needle and needle not in _searchable_text(e):
            continue
        out.append(e)
    return out
