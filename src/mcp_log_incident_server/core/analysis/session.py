"""Request correlation for incident analyses.

An LLM narrative arrives after the heuristic analysis it describes. A session
tags every analysis with a monotonic request id so a narrative for an analysis
that has since been superseded is dropped instead of overwriting newer results.
"""

from __future__ import annotations

import itertools
import logging
from collections.abc import Iterator, Sequence
from dataclasses import replace

import httpx

from ..llm import OllamaConfig, summarize_incident_with_ollama
from ..models import IncidentAnalysis, LogEntry
from .incident import analyze_incident

logger = logging.getLogger(__name__)


class IncidentSession:
    """Tracks the latest analysis request for one consumer (a window, a client).

    ``ids`` lets several sessions draw request ids from one counter so ids stay
    unique across them; staleness is still judged per session.
    """

    def __init__(self, ids: Iterator[int] | None = None) -> None:
        self._ids = ids if ids is not None else itertools.count(1)
        self._current: tuple[int, str | None] | None = None

    @property
    def current_request_id(self) -> int | None:
        return self._current[0] if self._current else None

    def analyze(
        self,
        entries: Sequence[LogEntry],
        *,
        source: str | None = None,
        **analyze_kwargs,
    ) -> IncidentAnalysis:
        """Run analyze_incident and mark the result as the session's latest."""
        analysis = analyze_incident(entries, **analyze_kwargs)
        request_id = next(self._ids)
        self._current = (request_id, source)
        return replace(analysis, request_id=request_id, source=source)

    def is_current(self, analysis: IncidentAnalysis) -> bool:
        if self._current is None or analysis.request_id is None:
            return False
        return (analysis.request_id, analysis.source) == self._current

    def apply_llm_summary(
        self,
        analysis: IncidentAnalysis,
        summary: str | None,
    ) -> IncidentAnalysis | None:
        """Attach a narrative if it is non-null and the analysis is still current."""
        if summary is None:
            return None
        if not self.is_current(analysis):
            logger.info(
                "Discarding stale LLM summary for request %s (current: %s)",
                analysis.request_id,
                self.current_request_id,
            )
            return None
        return replace(analysis, llm_summary=summary)

    async def upgrade(
        self,
        analysis: IncidentAnalysis,
        *,
        model: str | None = None,
        cfg: OllamaConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> IncidentAnalysis | None:
        """Request an LLM narrative; None when unavailable or stale."""
        summary = await summarize_incident_with_ollama(analysis, model, cfg=cfg, client=client)
        return self.apply_llm_summary(analysis, summary)
