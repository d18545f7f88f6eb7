"""Overview statistics for a log: level mix, time span, hourly load, noisy messages."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from ..models import LogEntry, LogLevel, LogStatistics, TimeRange
from ..timestamps import parse_iso_dt, to_epoch_ms
from .incident import is_error_level

TOP_MESSAGES = 5
MESSAGE_PREVIEW_CHARS = 50


def _level_name(level: LogLevel | str) -> str:
    return level.value if isinstance(level, LogLevel) else str(level).upper()


def _preview(message: str) -> str:
    if len(message) > MESSAGE_PREVIEW_CHARS:
        return message[:MESSAGE_PREVIEW_CHARS] + "..."
    return message


def log_statistics(entries: Sequence[LogEntry], *, top: int = TOP_MESSAGES) -> LogStatistics:
    """Summarize all entries (every level), skipping unparseable timestamps for time figures."""
    if entries is None:
        raise TypeError("entries must be a sequence of LogEntry, not None")

    levels = Counter(_level_name(e.level) for e in entries)
    order = {lvl.value: i for i, lvl in enumerate(LogLevel)}
    level_counts = dict(sorted(levels.items(), key=lambda kv: order.get(kv[0], len(order))))

    hours: Counter[int] = Counter()
    times: list[int] = []
    for e in entries:
        dt = parse_iso_dt(e.timestamp)
        if dt is None:
            continue
        hours[dt.hour] += 1
        times.append(to_epoch_ms(e.timestamp))

    time_range = TimeRange(start=min(times), end=max(times)) if times else None
    hourly = dict(sorted(hours.items()))
    # Ties go to the earliest hour.
    peak_hour = max(hourly.items(), key=lambda kv: kv[1]) if hourly else None

    noisy = Counter(
        _preview(e.message)
        for e in entries
        if is_error_level(e.level) or _level_name(e.level) == LogLevel.WARN.value
    )

    return LogStatistics(
        total=len(entries),
        level_counts=level_counts,
        error_count=sum(1 for e in entries if is_error_level(e.level)),
        warn_count=levels[LogLevel.WARN.value],
        time_range=time_range,
        time_span_ms=time_range.end - time_range.start if time_range else 0,
        hourly=hourly,
        peak_hour=peak_hour,
        top_messages=noisy.most_common(top),
    )
