"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def explain_incident(log_path: str, bucket_seconds: int = 60) -> list[dict[str, Any]]:
        """Build a prompt that explains the incident in a log file."""
        return [
            {
                "role": "system",
                "content": (
                    "You are a senior incident commander for backend services. "
                    "Explain incidents from structured analysis output only. "
                    "Do not invent details; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Explain the incident in this log file. Follow this workflow:\n"
                    "- Call analyze_incident first with the parameters below.\n"
                    "- If total is 0, say that no error-level incidents were found.\n"
                    "- Treat categories as ranked by priority (lower number first); the "
                    "first category is the primary root-cause candidate.\n"
                    "- Quote cluster samples as evidence; do not fabricate lines.\n"
                    "- Use search_logs for extra context on a specific pattern.\n\n"
                    "Call analyze_incident with:\n"
                    f"- log_path: {log_path}\n"
                    f"- bucket_seconds: {bucket_seconds}\n\n"
                    "Return this structure:\n"
                    "1) What happened and when (spike window if present)\n"
                    "2) Dominant error patterns (2-5, with counts)\n"
                    "3) Primary root cause (1-3 sentences; say 'Unknown' if unclear)\n"
                    "4) Alternative hypotheses (2-3, labelled)\n"
                    "5) Next actions (3-6 bullets)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: if you need raw context, you can read the log via:",
                    },
                    {"type": "resource", "uri": f"log://{log_path}"},
                ],
            },
        ]

    @mcp.prompt()
    def incident_postmortem(title: str, log_path: str, impact: str = "") -> list[dict[str, Any]]:
        """Build a prompt that produces a Markdown postmortem draft."""
        return [
            {
                "role": "system",
                "content": (
                    "Write a blameless incident postmortem in Markdown. Redact secrets, "
                    "credentials, or PII if present."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Title: {title}\n\n"
                    "Please write a postmortem with sections:\n"
                    "- Summary\n"
                    "- Impact (if missing, say 'unknown')\n"
                    "- Timeline (from spikes and time_range)\n"
                    "- Root Cause (from the highest-priority category and top clusters)\n"
                    "- Contributing Factors\n"
                    "- Action Items\n\n"
                    f"Known impact:\n{impact}\n\n"
                    f"Use tool analyze_incident on {log_path}.\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "The error category taxonomy is available at:"},
                    {"type": "resource", "uri": "app://log-incident/categories"},
                ],
            },
        ]
