"""Incident analysis orchestrator.

Filters error-level entries, narrows focus to the dominant spike, then clusters
and categorizes the focus set into a deterministic heuristic summary.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from collections.abc import Sequence

from ..models import (
    CategoryCount,
    Cluster,
    IncidentAnalysis,
    LogEntry,
    LogLevel,
    SpikeWindow,
    TimeRange,
)
from ..timestamps import to_epoch_ms
from .categories import DEFAULT_DECISION_LIST, CategoryDecisionList, categorize_error
from .clustering import DEFAULT_MAX_CLUSTERS, cluster_messages
from .spikes import DEFAULT_BUCKET_MS, detect_spikes, entry_times_ms

logger = logging.getLogger(__name__)

NO_INCIDENT_SUMMARY = "No error-level incidents detected in the current view."
_ERROR_LEVELS = {"ERROR", "FATAL"}


def is_error_level(level: LogLevel | str | None) -> bool:
    """True for ERROR or FATAL, case-insensitive."""
    if level is None:
        return False
    value = level.value if isinstance(level, LogLevel) else str(level)
    return value.upper() in _ERROR_LEVELS


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _time_range(entries: Sequence[LogEntry]) -> TimeRange | None:
    # Sorted rather than trusting input order.
    times = entry_times_ms(entries)
    if not times:
        return None
    return TimeRange(start=times[0], end=times[-1])


def _in_window(entry: LogEntry, spike: SpikeWindow) -> bool:
    t = to_epoch_ms(entry.timestamp)
    return t is not None and spike.start <= t <= spike.end


def _category_counts(
    focus: Sequence[LogEntry],
    decision_list: CategoryDecisionList,
) -> list[CategoryCount]:
    counts = Counter(
        categorize_error(e.message, e.data, decision_list=decision_list) for e in focus
    )
    out = [
        CategoryCount(
            category=category,
            count=n,
            percentage=round_half_up(n / len(focus) * 100),
        )
        for category, n in counts.items()
    ]
    out.sort(key=lambda c: c.category.priority)
    return out


def _top_pattern(clusters: Sequence[Cluster], categories: Sequence[CategoryCount]) -> str:
    """Repeated cluster sample if any, else the highest-priority category description."""
    if clusters and clusters[0].count > 1:
        return clusters[0].sample
    if categories:
        return categories[0].category.description
    return ""


def analyze_incident(
    entries: Sequence[LogEntry],
    *,
    bucket_ms: int = DEFAULT_BUCKET_MS,
    max_clusters: int = DEFAULT_MAX_CLUSTERS,
    decision_list: CategoryDecisionList = DEFAULT_DECISION_LIST,
) -> IncidentAnalysis:
    """Analyze the error-level subset of ``entries``.

    Pure and deterministic for identical input. Returns a neutral analysis with
    the fixed "no incidents" summary when there are no error entries.
    """
    if entries is None:
        raise TypeError("entries must be a sequence of LogEntry, not None")

    errors = [e for e in entries if is_error_level(e.level)]
    total = len(errors)
    if total == 0:
        return IncidentAnalysis(
            total=0,
            time_range=None,
            spikes=[],
            clusters=[],
            categories=[],
            summary=NO_INCIDENT_SUMMARY,
        )

    spikes = detect_spikes(errors, bucket_ms=bucket_ms)
    focus = [e for e in errors if _in_window(e, spikes[0])] if spikes else errors

    clusters = cluster_messages(focus, max_clusters=max_clusters)
    categories = _category_counts(focus, decision_list)
    top = _top_pattern(clusters, categories)

    kind = "a spike" if spikes else "an incident"
    summary = f'Detected {kind} with {len(focus)} error events. Top pattern: "{top}"'

    logger.debug(
        "Analyzed %s error entries (%s spikes, focus=%s, clusters=%s)",
        total,
        len(spikes),
        len(focus),
        len(clusters),
    )
    return IncidentAnalysis(
        total=total,
        time_range=_time_range(errors),
        spikes=spikes,
        clusters=clusters,
        categories=categories,
        summary=summary,
    )
