"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_incident_server.core.analysis import ERROR_CATEGORIES
from mcp_log_incident_server.core.llm import OllamaGenerateRequest
from mcp_log_incident_server.core.log_service import read_log_text
from mcp_log_incident_server.core.serialization import category_to_dict

ALLOWED_FILE_SUFFIXES = {".log", ".txt", ".json", ".jsonl", ".ndjson"}
BASE_DIR_ENV = "LOG_INCIDENT_BASE_DIR"


def _base_dir() -> Path:
    """Return the resolved base directory for file resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _allowed_suffix(path: Path) -> str:
    """Return the effective suffix for allowlist checks (``.log.gz`` counts as ``.log``)."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        suffix = path.with_suffix("").suffix.lower()
    return suffix


def resolve_log_path(path: str) -> Path:
    """Resolve and validate a log file path for resource access."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    if _allowed_suffix(resolved) not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")
    return resolved


SAMPLE_LOG = (
    '{"level":30,"time":1735545121000,"msg":"service started","service":"orders"}\n'
    '{"level":50,"time":1735545123000,"msg":"db connection timeout after 5000 ms",'
    '"code":"ETIMEDOUT","service":"orders"}\n'
    '{"level":50,"time":1735545124000,"msg":"db connection timeout after 5012 ms",'
    '"code":"ETIMEDOUT","service":"orders"}\n'
    "TypeError: Cannot read properties of undefined (reading 'id')\n"
    "    at handler (/srv/app/routes/orders.js:42:17)\n"
    '{"level":"error","time":"2024-12-30T08:12:05.000Z","msg":"unauthorized token",'
    '"path":"/api/v1/orders","method":"POST"}\n'
)


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://log-incident/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        base = _base_dir()
        return (
            "Resources:\n"
            "- app://log-incident/help\n"
            "- app://log-incident/categories\n"
            "- app://log-incident/schemas/ollama-generate\n"
            "- app://log-incident/examples/sample-log\n"
            f"- log://{{path}} (restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {base}\n"
        )

    @mcp.resource("app://log-incident/examples/sample-log")
    def sample_log() -> str:
        """Return a tiny mixed Pino/plain-text log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://log-incident/categories")
    def categories() -> list[dict[str, Any]]:
        """Return the error category taxonomy in evaluation order."""
        return [category_to_dict(c) for c in ERROR_CATEGORIES]

    @mcp.resource("app://log-incident/schemas/ollama-generate")
    def ollama_generate_schema() -> dict[str, Any]:
        """Return the JSON schema of the generation request sent to Ollama."""
        return OllamaGenerateRequest.model_json_schema()

    @mcp.resource("log://{path}")
    async def read_log(path: str) -> str:
        """Return the full log contents."""
        return await read_log_text(resolve_log_path(path))
