"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (e.g., analyze the incident in a log file)
- Resources: addressable data blobs (e.g., the category taxonomy, log contents)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_log_incident_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_log_incident_server.prompts.registry import register_prompts
from mcp_log_incident_server.resources.registry import register_resources
from mcp_log_incident_server.tools.incident import (
    analyze_incident_impl,
    list_error_categories_impl,
    log_statistics_impl,
    search_logs_impl,
)

LOGGER = logging.getLogger(__name__)
LOG_LEVEL_ENV = "LOG_INCIDENT_LOG_LEVEL"


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


mcp = FastMCP("log-incident", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def analyze_incident(
    log_path: str,
    include_llm: bool = False,
    model: str | None = None,
    bucket_seconds: int = 60,
    max_clusters: int = 10,
) -> dict[str, Any]:
    """Summarize the error-level incident in a log file.

    Parameters
    ----------
    log_path:
        Path to a local log file (Pino JSON lines or plain text). Supports .gz.
    include_llm:
        When true, ask the local Ollama service for an HTML narrative. The heuristic
        analysis is returned either way; ``llm_status`` reports whether a narrative
        was attached.
    model:
        Ollama model id (defaults to LOG_INCIDENT_OLLAMA_MODEL or llama3.1:8b).
    bucket_seconds:
        Width of the time buckets used for spike detection.
    max_clusters:
        Maximum number of message clusters returned.

    Returns
    -------
    dict:
        {"total", "time_range", "spikes", "clusters", "categories", "summary",
         "request_id", "source", "llm_summary"?, "llm_status"?}
    """
    return await analyze_incident_impl(
        log_path=log_path,
        include_llm=include_llm,
        model=model,
        bucket_seconds=bucket_seconds,
        max_clusters=max_clusters,
    )


@mcp.tool()
async def search_logs(
    log_path: str,
    query: str | None = None,
    levels: Sequence[str] | None = None,
    limit: int | None = None,
    include_raw: bool = False,
) -> dict[str, Any]:
    """Return parsed entries matching a level filter and search text.

    Parameters
    ----------
    levels:
        Severity names (ERROR, WARN, INFO, DEBUG). Case-insensitive.
    query:
        Case-insensitive text matched against message, level, timestamp and fields.
    limit:
        Maximum number of entries returned (hard-capped in the implementation).
    """
    return await search_logs_impl(
        log_path=log_path,
        query=query,
        levels=levels,
        limit=limit,
        include_raw=include_raw,
    )


@mcp.tool()
async def log_statistics(log_path: str) -> dict[str, Any]:
    """Overview of a whole log: counts per level, time span, hourly load and noisy messages.

    Returns
    -------
    dict:
        {"total", "level_counts", "error_count", "warn_count", "time_range",
         "time_span_ms", "hourly", "peak_hour", "top_messages"}
    """
    return await log_statistics_impl(log_path=log_path)


@mcp.tool()
def list_error_categories() -> list[dict[str, Any]]:
    """Return the error category taxonomy in priority order (first match wins)."""
    return list_error_categories_impl()


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
