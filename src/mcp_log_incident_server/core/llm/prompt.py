"""Prompt construction for the incident narrative."""

from __future__ import annotations

import json
from typing import Any

from ..models import IncidentAnalysis
from ..serialization import category_count_to_dict, cluster_to_dict, spike_to_dict


def incident_evidence(
    analysis: IncidentAnalysis,
    *,
    max_clusters: int = 5,
    max_categories: int = 5,
) -> dict[str, Any]:
    """Select the evidence the model is allowed to use."""
    return {
        "total": analysis.total,
        "spikes": [spike_to_dict(s) for s in analysis.spikes],
        "topClusters": [cluster_to_dict(c) for c in analysis.clusters[:max_clusters]],
        "categories": [category_count_to_dict(c) for c in analysis.categories[:max_categories]],
        "heuristic": analysis.summary,
    }


def build_incident_prompt(
    analysis: IncidentAnalysis,
    *,
    max_clusters: int = 5,
    max_categories: int = 5,
) -> str:
    """Build the incident-report prompt for a local model."""
    evidence = json.dumps(
        incident_evidence(analysis, max_clusters=max_clusters, max_categories=max_categories),
        ensure_ascii=False,
        default=str,
    )
    return (
        "ROLE: You are a senior SRE/incident commander writing a comprehensive yet readable "
        "engineering incident report.\n\n"
        "CONSTRAINTS:\n"
        "- Use ONLY the provided evidence. Do not invent data.\n"
        "- Be specific and high-signal. Prefer concrete fields (codes, endpoints, components).\n"
        "- Keep it concise but complete. No speculation without marking it as hypothesis.\n"
        "- Output MUST be clean, semantic HTML (no markdown, no code fences), "
        "a single snippet (no <html>/<body>).\n"
        "- Spike and time values are epoch milliseconds.\n\n"
        f"EVIDENCE (JSON):\n{evidence}\n\n"
        "TASK:\n"
        "Produce an HTML report with these sections, each wrapped in "
        '<div class="incident-section"> with an <h3 class="section-title"> header:\n'
        "1) Incident Overview: <p><strong>What:</strong> ...</p>, "
        "<p><strong>When:</strong> time window (include the spike window if present)</p>, "
        "<p><strong>Volume:</strong> total error count and rate</p>.\n"
        '2) Dominant Error Patterns: <ul class="pattern-list"> with 3-5 patterns '
        "and their frequency.\n"
        '3) Primary Root Cause: <div class="root-cause-box"> naming the most likely '
        "category, 2-3 sentences on why, and the supporting evidence.\n"
        '4) Alternative Hypotheses: <ul class="hypothesis-list"> with 2-3 items, '
        "each labelled as a hypothesis.\n"
        '5) Immediate Next Steps: <ol class="action-list"> with 4-6 concrete steps '
        "(validate, investigate, mitigate, monitor, escalate).\n\n"
        "RULES:\n"
        "- Prioritize error categories by their priority number (lower is more severe): "
        "Database > Authentication > Network > External API > others.\n"
        "- Add specific data points (percentages, counts, timestamps) where available.\n"
        "- Keep paragraphs short (2-3 sentences max).\n\n"
        "OUTPUT: Return ONLY the HTML content, no explanations or markdown.\n"
    )
