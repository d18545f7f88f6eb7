"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import httpx

from mcp_log_incident_server.core.analysis import ERROR_CATEGORIES, IncidentSession, log_statistics
from mcp_log_incident_server.core.llm import OllamaConfig, sanitize_llm_html
from mcp_log_incident_server.core.log_service import filter_entries, load_entries, parse_levels
from mcp_log_incident_server.core.serialization import (
    analysis_to_dict,
    category_to_dict,
    entry_to_dict,
    statistics_to_dict,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000
DEFAULT_BUCKET_SECONDS = 60
DEFAULT_MAX_CLUSTERS = 10

# Request ids are unique per server process; each tool call is its own session.
_REQUEST_IDS = itertools.count(1)


def _validate_analysis_params(bucket_seconds: int, max_clusters: int) -> None:
    if bucket_seconds <= 0:
        raise ValueError("bucket_seconds must be > 0")
    if max_clusters <= 0:
        raise ValueError("max_clusters must be > 0")


async def analyze_incident_impl(
    *,
    log_path: str,
    include_llm: bool = False,
    model: str | None = None,
    bucket_seconds: int = DEFAULT_BUCKET_SECONDS,
    max_clusters: int = DEFAULT_MAX_CLUSTERS,
    session: IncidentSession | None = None,
    llm_cfg: OllamaConfig | None = None,
    llm_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Implementation for the `analyze_incident` MCP tool.

    Notes
    -----
    - The heuristic analysis is always returned.
    - include_llm adds ``llm_summary`` (sanitized HTML) when the local model
      answered and the analysis is still the session's latest. ``llm_status``
      is "ok", "unavailable" (no answer from the model) or "stale" (a newer
      analysis ran on the same caller-supplied session).
    """
    _validate_analysis_params(bucket_seconds, max_clusters)
    if session is None:
        session = IncidentSession(ids=_REQUEST_IDS)

    entries = await load_entries(log_path)
    analysis = session.analyze(
        entries,
        source=str(Path(log_path).resolve()),
        bucket_ms=bucket_seconds * 1000,
        max_clusters=max_clusters,
    )

    if not include_llm:
        return analysis_to_dict(analysis)

    upgraded = await session.upgrade(analysis, model=model, cfg=llm_cfg, client=llm_client)
    if upgraded is None:
        out = analysis_to_dict(analysis)
        out["llm_status"] = "unavailable" if session.is_current(analysis) else "stale"
        return out

    out = analysis_to_dict(upgraded)
    out["llm_summary"] = sanitize_llm_html(upgraded.llm_summary or "")
    out["llm_status"] = "ok"
    return out


async def search_logs_impl(
    *,
    log_path: str,
    query: str | None = None,
    levels: Sequence[str] | None = None,
    limit: int | None = None,
    include_raw: bool = False,
) -> dict[str, Any]:
    """Implementation for the `search_logs` MCP tool."""
    if limit is None:
        limit = DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    if limit > HARD_LIMIT:
        limit = HARD_LIMIT

    entries = await load_entries(log_path)
    matched = filter_entries(entries, query=query, levels=parse_levels(levels))
    logger.debug("search_logs matched %s of %s entries", len(matched), len(entries))

    page = matched[:limit]
    return {
        "count": len(page),
        "total_matches": len(matched),
        "entries": [entry_to_dict(e, include_raw=include_raw) for e in page],
    }


async def log_statistics_impl(*, log_path: str) -> dict[str, Any]:
    """Implementation for the `log_statistics` MCP tool."""
    entries = await load_entries(log_path)
    return statistics_to_dict(log_statistics(entries))


def list_error_categories_impl() -> list[dict[str, Any]]:
    """Implementation for the `list_error_categories` MCP tool."""
    return [category_to_dict(c) for c in ERROR_CATEGORIES]
