"""LLM upgrade models and configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

import httpx
from pydantic import BaseModel, Field

DEFAULT_OLLAMA_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "llama3.1:8b"

ENV_OLLAMA_URL = "LOG_INCIDENT_OLLAMA_URL"
ENV_OLLAMA_MODEL = "LOG_INCIDENT_OLLAMA_MODEL"
ENV_OLLAMA_TIMEOUT = "LOG_INCIDENT_OLLAMA_TIMEOUT"


class OllamaOptions(BaseModel):
    temperature: float = Field(ge=0.0, le=2.0, description="Sampling temperature.")


class OllamaGenerateRequest(BaseModel):
    """Body of ``POST /api/generate``."""

    model: str = Field(min_length=1)
    prompt: str
    stream: bool = False
    options: OllamaOptions


class OllamaGenerateResponse(BaseModel):
    """Subset of the non-streaming ``/api/generate`` response we rely on."""

    response: str


@dataclass(frozen=True, slots=True)
class OllamaConfig:
    base_url: str = DEFAULT_OLLAMA_URL
    model: str = DEFAULT_OLLAMA_MODEL
    temperature: float = 0.2

    # Seconds. A timeout is treated like an unreachable service.
    health_timeout_s: float = 5.0
    timeout_s: float = 120.0

    max_clusters: int = 5
    max_categories: int = 5


def _env_positive_float(name: str) -> float | None:
    env = os.getenv(name)
    if env is None or env == "":
        return None
    try:
        value = float(env)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number") from exc
    if value <= 0:
        raise ValueError(f"{name} must be > 0")
    return value


def _env_base_url(url: str) -> str:
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"{ENV_OLLAMA_URL} must be an http(s) URL")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise ValueError(f"{ENV_OLLAMA_URL} is not a valid URL: {exc}") from exc
    if not parsed.host:
        raise ValueError(f"{ENV_OLLAMA_URL} must include a host")
    return url.rstrip("/")


def resolve_ollama_config(cfg: OllamaConfig | None) -> OllamaConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = OllamaConfig()

    url = os.getenv(ENV_OLLAMA_URL)
    if url:
        cfg = replace(cfg, base_url=_env_base_url(url))

    model = os.getenv(ENV_OLLAMA_MODEL)
    if model:
        cfg = replace(cfg, model=model)

    timeout = _env_positive_float(ENV_OLLAMA_TIMEOUT)
    if timeout is not None:
        cfg = replace(cfg, timeout_s=timeout)

    return cfg
