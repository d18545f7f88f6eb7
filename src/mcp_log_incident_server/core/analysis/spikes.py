"""Fixed-window burst detection over entry timestamps."""

from __future__ import annotations

import statistics
from collections.abc import Sequence

from ..models import LogEntry, SpikeWindow
from ..timestamps import to_epoch_ms

DEFAULT_BUCKET_MS = 60_000
MIN_SPIKE_THRESHOLD = 10


def entry_times_ms(entries: Sequence[LogEntry]) -> list[int]:
    """Return sorted millisecond timestamps, skipping unparseable ones."""
    times = (to_epoch_ms(e.timestamp) for e in entries)
    return sorted(t for t in times if t is not None)


def bucket_counts(times: Sequence[int], bucket_ms: int) -> list[int]:
    """Count sorted times into buckets covering ``[min, max + bucket_ms]``."""
    if not times:
        return []
    start = times[0]
    buckets = [0] * ((times[-1] - start) // bucket_ms + 2)
    for t in times:
        buckets[(t - start) // bucket_ms] += 1
    return buckets


def spike_threshold(buckets: Sequence[int]) -> float:
    """Return ``max(10, mean + 3 * std)`` over the bucket counts."""
    mean = statistics.fmean(buckets)
    std = statistics.pstdev(buckets, mu=mean)
    return max(MIN_SPIKE_THRESHOLD, mean + 3 * std)


def detect_spikes(entries: Sequence[LogEntry], bucket_ms: int = DEFAULT_BUCKET_MS) -> list[SpikeWindow]:
    """Find contiguous runs of buckets at or above the spike threshold.

    Returns spikes sorted by count, largest first. Bounds are bucket edges in
    epoch milliseconds with an inclusive ``end``.
    """
    if bucket_ms <= 0:
        raise ValueError("bucket_ms must be > 0")

    times = entry_times_ms(entries)
    if not times:
        return []

    start = times[0]
    buckets = bucket_counts(times, bucket_ms)
    threshold = spike_threshold(buckets)

    spikes: list[SpikeWindow] = []
    run_start: int | None = None
    run_count = 0
    for i, n in enumerate(buckets):
        if n >= threshold:
            if run_start is None:
                run_start = i
            run_count += n
        elif run_start is not None:
            spikes.append(_window(start, run_start, i, bucket_ms, run_count))
            run_start = None
            run_count = 0

    if run_start is not None:
        spikes.append(_window(start, run_start, len(buckets), bucket_ms, run_count))

    return sorted(spikes, key=lambda s: s.count, reverse=True)


def _window(origin: int, first: int, stop: int, bucket_ms: int, count: int) -> SpikeWindow:
    return SpikeWindow(
        start=origin + first * bucket_ms,
        end=origin + stop * bucket_ms - 1,
        count=count,
    )
