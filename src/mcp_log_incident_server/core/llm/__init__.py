"""LLM narrative upgrade package."""

from __future__ import annotations

from .models import (
    OllamaConfig,
    OllamaGenerateRequest,
    OllamaGenerateResponse,
    resolve_ollama_config,
)
from .prompt import build_incident_prompt, incident_evidence
from .sanitize import sanitize_llm_html
from .service import is_ollama_available, summarize_incident_with_ollama

__all__ = [
    "OllamaConfig",
    "OllamaGenerateRequest",
    "OllamaGenerateResponse",
    "build_incident_prompt",
    "incident_evidence",
    "is_ollama_available",
    "resolve_ollama_config",
    "sanitize_llm_html",
    "summarize_incident_with_ollama",
]
