"""Signature-based message clustering."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..models import Cluster, LogEntry

NOTABLE_FIELDS: tuple[str, ...] = ("code", "error", "name", "path", "method", "service")
DEFAULT_MAX_CLUSTERS = 10

_QUOTED_RE = re.compile(r"\"[^\"]+\"|'[^']+'")
_HEX_ID_RE = re.compile(r"\b[0-9a-f]{8,}\b", re.ASCII)
_NUMBER_RE = re.compile(r"\b\d+\b", re.ASCII)
_SPACE_RE = re.compile(r"\s+")


def normalize_message(text: str) -> str:
    """Collapse variable tokens so near-duplicate messages share a signature."""
    text = (text or "").lower()
    text = _QUOTED_RE.sub('"<str>"', text)
    text = _HEX_ID_RE.sub("<id>", text)
    text = _NUMBER_RE.sub("<num>", text)
    return _SPACE_RE.sub(" ", text).strip()


def message_signature(entry: LogEntry) -> str:
    """Grouping key: sorted JSON keys (structured entries only) + normalized message."""
    base = json.dumps(sorted(entry.data), separators=(",", ":")) if entry.is_json else ""
    return base + "|" + normalize_message(entry.message or entry.raw)


@dataclass(slots=True)
class _Group:
    sample: str
    count: int = 0
    fields: dict[str, Any] = field(default_factory=dict)


def cluster_messages(entries: Sequence[LogEntry], max_clusters: int = DEFAULT_MAX_CLUSTERS) -> list[Cluster]:
    """Group entries by signature, most frequent first."""
    if max_clusters < 0:
        raise ValueError("max_clusters must be >= 0")

    groups: dict[str, _Group] = {}
    for e in entries:
        sig = message_signature(e)
        group = groups.get(sig)
        if group is None:
            group = groups[sig] = _Group(sample=e.message or e.raw)
        group.count += 1
        if e.is_json:
            for k in NOTABLE_FIELDS:
                # First occurrence wins; JSON null is a captured value.
                if k in e.data and k not in group.fields:
                    group.fields[k] = e.data[k]

    clusters = [
        Cluster(signature=sig, sample=g.sample, count=g.count, fields=g.fields)
        for sig, g in groups.items()
    ]
    clusters.sort(key=lambda c: c.count, reverse=True)
    return clusters[:max_clusters]
