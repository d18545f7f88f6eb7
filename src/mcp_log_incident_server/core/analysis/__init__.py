"""Incident analysis engine package."""

from __future__ import annotations

from .categories import (
    ERROR_CATEGORIES,
    CategoryDecisionList,
    categorize_error,
    get_category,
)
from .clustering import NOTABLE_FIELDS, cluster_messages, normalize_message
from .incident import NO_INCIDENT_SUMMARY, analyze_incident, is_error_level
from .session import IncidentSession
from .spikes import detect_spikes
from .stats import log_statistics

__all__ = [
    "ERROR_CATEGORIES",
    "NOTABLE_FIELDS",
    "NO_INCIDENT_SUMMARY",
    "CategoryDecisionList",
    "IncidentSession",
    "analyze_incident",
    "categorize_error",
    "cluster_messages",
    "detect_spikes",
    "get_category",
    "is_error_level",
    "log_statistics",
    "normalize_message",
]
