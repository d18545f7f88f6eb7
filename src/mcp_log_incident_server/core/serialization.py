"""JSON-serializable views of core models."""

from __future__ import annotations

from typing import Any

from .models import (
    CategoryCount,
    Cluster,
    ErrorCategory,
    IncidentAnalysis,
    LogEntry,
    LogStatistics,
    SpikeWindow,
)


def entry_to_dict(entry: LogEntry, *, include_raw: bool = True) -> dict[str, Any]:
    """Convert a LogEntry into a JSON-serializable dict."""
    d: dict[str, Any] = {
        "id": entry.id,
        "level": entry.level.value,
        "timestamp": entry.timestamp,
        "message": entry.message,
        "data": dict(entry.data),
        "is_json": entry.is_json,
    }
    if include_raw:
        d["raw"] = entry.raw
    return d


def spike_to_dict(spike: SpikeWindow) -> dict[str, int]:
    return {"start": spike.start, "end": spike.end, "count": spike.count}


def cluster_to_dict(cluster: Cluster) -> dict[str, Any]:
    return {
        "signature": cluster.signature,
        "sample": cluster.sample,
        "count": cluster.count,
        "fields": dict(cluster.fields),
    }


def category_to_dict(category: ErrorCategory) -> dict[str, Any]:
    return {
        "name": category.name,
        "priority": category.priority,
        "description": category.description,
        "patterns": list(category.patterns),
    }


def category_count_to_dict(item: CategoryCount) -> dict[str, Any]:
    return {
        "category": category_to_dict(item.category),
        "count": item.count,
        "percentage": item.percentage,
    }


def analysis_to_dict(analysis: IncidentAnalysis) -> dict[str, Any]:
    """Convert an IncidentAnalysis into plain data.

    ``llm_summary`` is only present once a narrative has been attached.
    """
    tr = analysis.time_range
    d: dict[str, Any] = {
        "total": analysis.total,
        "time_range": {"start": tr.start, "end": tr.end} if tr is not None else None,
        "spikes": [spike_to_dict(s) for s in analysis.spikes],
        "clusters": [cluster_to_dict(c) for c in analysis.clusters],
        "categories": [category_count_to_dict(c) for c in analysis.categories],
        "summary": analysis.summary,
    }
    if analysis.llm_summary is not None:
        d["llm_summary"] = analysis.llm_summary
    if analysis.request_id is not None:
        d["request_id"] = analysis.request_id
    if analysis.source is not None:
        d["source"] = analysis.source
    return d


def statistics_to_dict(stats: LogStatistics) -> dict[str, Any]:
    """Convert LogStatistics into plain data (hour keys become strings in JSON)."""
    tr = stats.time_range
    peak = stats.peak_hour
    return {
        "total": stats.total,
        "level_counts": dict(stats.level_counts),
        "error_count": stats.error_count,
        "warn_count": stats.warn_count,
        "time_range": {"start": tr.start, "end": tr.end} if tr is not None else None,
        "time_span_ms": stats.time_span_ms,
        "hourly": {str(hour): count for hour, count in stats.hourly.items()},
        "peak_hour": {"hour": peak[0], "count": peak[1]} if peak is not None else None,
        "top_messages": [{"message": m, "count": c} for m, c in stats.top_messages],
    }
