from __future__ import annotations

import pytest

from mcp_log_incident_server.core.analysis.spikes import (
    bucket_counts,
    detect_spikes,
    spike_threshold,
)
from mcp_log_incident_server.core.timestamps import to_epoch_ms

ORIGIN_MS = 1767081600000  # 2025-12-30T08:00:00Z


def test_detect_spikes_empty() -> None:
    assert detect_spikes([]) == []


def test_detect_spikes_ignores_unparseable_timestamps(make_entry) -> None:
    entries = [make_entry(timestamp="not a time") for _ in range(50)]
    assert detect_spikes(entries) == []


def test_detect_spikes_finds_burst(make_entry) -> None:
    scattered = [make_entry(offset_s=s) for s in (0, 600, 1200, 1800, 2400)]
    burst = [make_entry(offset_s=1500 + i / 10) for i in range(100)]

    spikes = detect_spikes(scattered + burst, bucket_ms=60_000)

    assert len(spikes) == 1
    spike = spikes[0]
    assert spike.count == 100
    assert spike.start == ORIGIN_MS + 25 * 60_000
    assert spike.end == ORIGIN_MS + 26 * 60_000 - 1
    for e in burst:
        assert spike.start <= to_epoch_ms(e.timestamp) <= spike.end


def test_detect_spikes_sorted_by_count(make_entry) -> None:
    small = [make_entry(offset_s=i / 10) for i in range(30)]
    large = [make_entry(offset_s=3000 + i / 10) for i in range(50)]

    spikes = detect_spikes(small + large)

    assert [s.count for s in spikes] == [50, 30]
    assert spikes[1].start == ORIGIN_MS
    assert spikes[1].end == ORIGIN_MS + 60_000 - 1


def test_few_errors_never_spike(make_entry) -> None:
    entries = [make_entry(offset_s=i) for i in range(5)]
    assert detect_spikes(entries) == []


def test_bucket_counts_and_threshold() -> None:
    counts = bucket_counts([0, 10, 60_000, 125_000], 60_000)

    assert counts == [2, 1, 1, 0]
    assert spike_threshold([1, 1, 1]) == 10
    assert spike_threshold([0, 100]) == pytest.approx(50 + 3 * 50)


def test_detect_spikes_rejects_bad_bucket(make_entry) -> None:
    with pytest.raises(ValueError, match="bucket_ms"):
        detect_spikes([make_entry()], bucket_ms=0)


def test_burst_among_errors_hours_apart(make_entry) -> None:
    scattered = [make_entry(offset_s=h * 3600) for h in (0, 2, 4, 6, 8)]
    burst = [make_entry(offset_s=3 * 3600 + i / 10) for i in range(100)]

    spikes = detect_spikes(burst + scattered)

    assert len(spikes) == 1
    assert spikes[0].count == 100
    assert spikes[0].start == ORIGIN_MS + 3 * 3600 * 1000


def test_growing_a_spike_bucket_keeps_it(make_entry) -> None:
    base = [make_entry(offset_s=s) for s in (0, 600, 1200, 1800, 2400)]
    burst = [make_entry(offset_s=1500 + i / 10) for i in range(40)]

    before = detect_spikes(base + burst)
    after = detect_spikes(base + burst + [make_entry(offset_s=1530 + i / 10) for i in range(40)])

    assert [s.start for s in before] == [ORIGIN_MS + 25 * 60_000]
    assert [(s.start, s.count) for s in after] == [(ORIGIN_MS + 25 * 60_000, 80)]
