"""LLM-facing narrative upgrade.

Asks a local Ollama service for an HTML incident report built from a heuristic
IncidentAnalysis. Every failure collapses to ``None``: the heuristic analysis
stays the only guaranteed output.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from pydantic import ValidationError

from ..models import IncidentAnalysis
from .models import (
    OllamaConfig,
    OllamaGenerateRequest,
    OllamaGenerateResponse,
    OllamaOptions,
    resolve_ollama_config,
)
from .prompt import build_incident_prompt

logger = logging.getLogger(__name__)

TAGS_PATH = "/api/tags"
GENERATE_PATH = "/api/generate"


@asynccontextmanager
async def _client_for(
    cfg: OllamaConfig,
    client: httpx.AsyncClient | None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the caller's client, or a short-lived one bound to the configured base URL."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(base_url=cfg.base_url, timeout=cfg.timeout_s) as owned:
        yield owned


async def _health_check(client: httpx.AsyncClient, cfg: OllamaConfig) -> bool:
    try:
        resp = await client.get(TAGS_PATH, timeout=cfg.health_timeout_s)
    except httpx.HTTPError as e:
        logger.info("Ollama not reachable at %s: %s", cfg.base_url, e)
        return False
    if not resp.is_success:
        logger.info("Ollama health check failed: HTTP %s", resp.status_code)
        return False
    return True


def _config_or_none(cfg: OllamaConfig | None) -> OllamaConfig | None:
    if cfg is not None:
        return cfg
    try:
        return resolve_ollama_config(None)
    except ValueError as e:
        logger.warning("Invalid Ollama configuration: %s", e)
        return None


async def is_ollama_available(
    cfg: OllamaConfig | None = None,
    *,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Return True when the model-list endpoint answers with a 2xx."""
    cfg = _config_or_none(cfg)
    if cfg is None:
        return False
    try:
        async with _client_for(cfg, client) as c:
            return await _health_check(c, cfg)
    except httpx.InvalidURL as e:
        logger.warning("Invalid Ollama base URL %r: %s", cfg.base_url, e)
        return False


async def _generate(client: httpx.AsyncClient, body: OllamaGenerateRequest, cfg: OllamaConfig) -> str | None:
    try:
        resp = await client.post(GENERATE_PATH, json=body.model_dump(), timeout=cfg.timeout_s)
    except httpx.HTTPError as e:
        logger.warning("Ollama generate request failed: %s", e)
        return None
    if not resp.is_success:
        logger.warning("Ollama generate returned HTTP %s", resp.status_code)
        return None

    try:
        payload = OllamaGenerateResponse.model_validate_json(resp.content)
    except ValidationError as e:
        logger.warning("Malformed Ollama response: %s", e.errors(include_url=False)[:1])
        return None
    return payload.response.strip()


async def summarize_incident_with_ollama(
    analysis: IncidentAnalysis,
    model: str | None = None,
    *,
    cfg: OllamaConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> str | None:
    """Return an HTML narrative for ``analysis``, or None if no upgrade is available.

    The generation request is only sent after a successful health check. The
    returned text is not sanitized.
    """
    cfg = _config_or_none(cfg)
    if cfg is None:
        return None
    try:
        body = OllamaGenerateRequest(
            model=model or cfg.model,
            prompt=build_incident_prompt(
                analysis,
                max_clusters=cfg.max_clusters,
                max_categories=cfg.max_categories,
            ),
            stream=False,
            options=OllamaOptions(temperature=cfg.temperature),
        )
    except ValidationError as e:
        logger.warning("Invalid Ollama request settings: %s", e.errors(include_url=False)[:1])
        return None

    try:
        async with _client_for(cfg, client) as c:
            if not await _health_check(c, cfg):
                return None
            text = await _generate(c, body, cfg)
    except httpx.InvalidURL as e:
        logger.warning("Invalid Ollama base URL %r: %s", cfg.base_url, e)
        return None

    if text is not None:
        logger.debug("Received LLM summary (%s chars) using model %s", len(text), body.model)
    return text
