"""Core data models for incident analysis."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Normalized severity levels produced by the parser."""

    ERROR = "ERROR"
    WARN = "WARN"
    INFO = "INFO"
    DEBUG = "DEBUG"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One parsed log line or multi-line block.

    The dataclass is frozen but ``data`` is the decoded JSON object itself, so
    the freeze is shallow: treat ``data`` as read-only. Serializers hand out
    copies.
    """

    id: int
    level: LogLevel
    timestamp: str  # ISO-8601
    message: str
    data: dict[str, Any]
    raw: str  # source text, may span several physical lines
    is_json: bool


@dataclass(frozen=True, slots=True)
class SpikeWindow:
    """Contiguous run of anomalous buckets (epoch ms, end inclusive)."""

    start: int
    end: int
    count: int


@dataclass(frozen=True, slots=True)
class Cluster:
    """Group of messages sharing a normalized signature."""

    signature: str
    sample: str
    count: int
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ErrorCategory:
    """Static taxonomy entry. Lower priority number ranks higher."""

    name: str
    priority: int
    description: str
    patterns: tuple[str, ...] = ()

    def matches(self, text: str) -> bool:
        """Return True when any pattern is a substring of the lowercased text."""
        return any(p in text for p in self.patterns)


@dataclass(frozen=True, slots=True)
class CategoryCount:
    category: ErrorCategory
    count: int
    percentage: int


@dataclass(frozen=True, slots=True)
class TimeRange:
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class IncidentAnalysis:
    """Result of one incident analysis request.

    ``request_id`` and ``source`` identify the request that produced the
    analysis so a late LLM narrative can be matched (or discarded) by callers.
    """

    total: int
    time_range: TimeRange | None
    spikes: list[SpikeWindow]
    clusters: list[Cluster]
    categories: list[CategoryCount]
    summary: str
    llm_summary: str | None = None
    request_id: int | None = None
    source: str | None = None


@dataclass(frozen=True, slots=True)
class LogStatistics:
    """Overview counts for a whole set of entries.

    Hours are UTC. ``top_messages`` holds ERROR/WARN messages cut to 50
    characters, most frequent first.
    """

    total: int
    level_counts: dict[str, int]
    error_count: int
    warn_count: int
    time_range: TimeRange | None
    time_span_ms: int
    hourly: dict[int, int]
    peak_hour: tuple[int, int] | None
    top_messages: list[tuple[str, int]]
