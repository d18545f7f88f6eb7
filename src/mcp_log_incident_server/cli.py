from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

from mcp_log_incident_server.core.analysis import IncidentSession, log_statistics
from mcp_log_incident_server.core.export import entries_to_csv, entries_to_json
from mcp_log_incident_server.core.llm import resolve_ollama_config, sanitize_llm_html
from mcp_log_incident_server.core.llm.models import DEFAULT_OLLAMA_URL
from mcp_log_incident_server.core.log_service import load_entries
from mcp_log_incident_server.core.models import IncidentAnalysis, LogStatistics
from mcp_log_incident_server.core.serialization import analysis_to_dict, statistics_to_dict


def _positive_int(s: str) -> int:
    try:
        value = int(s)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected an integer, got {s!r}") from e
    if value <= 0:
        raise argparse.ArgumentTypeError("must be > 0")
    return value


def _fmt_ms(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=UTC).isoformat(timespec="seconds")


def _print_text(analysis: IncidentAnalysis) -> None:
    print(analysis.summary)
    if analysis.total == 0:
        return

    if analysis.time_range is not None:
        tr = analysis.time_range
        print(f"\nErrors: {analysis.total} between {_fmt_ms(tr.start)} and {_fmt_ms(tr.end)}")

    print("\nSpikes:")
    if not analysis.spikes:
        print("  (none)")
    for s in analysis.spikes:
        print(f"  {_fmt_ms(s.start)} .. {_fmt_ms(s.end)}  {s.count} errors")

    print("\nCategories:")
    for c in analysis.categories:
        print(f"  [{c.category.priority:>2}] {c.category.name}: {c.count} ({c.percentage}%)")

    print("\nTop clusters:")
    for c in analysis.clusters:
        first_line = c.sample.splitlines()[0] if c.sample else ""
        print(f"  {c.count:>5}  {first_line}")

    if analysis.llm_summary:
        print("\nLLM summary (HTML):")
        print(analysis.llm_summary)


def _print_overview(stats: LogStatistics) -> None:
    levels = ", ".join(f"{name} {count}" for name, count in stats.level_counts.items())
    print("\nOverview:")
    print(f"  Entries: {stats.total} ({levels or 'none'})")
    if stats.time_range is not None:
        tr = stats.time_range
        print(f"  Span: {stats.time_span_ms // 1000}s ({_fmt_ms(tr.start)} .. {_fmt_ms(tr.end)})")
    if stats.peak_hour is not None:
        hour, count = stats.peak_hour
        print(f"  Peak hour: {hour:02d}:00 UTC ({count} entries)")
    if stats.top_messages:
        print("  Frequent errors and warnings:")
        for message, count in stats.top_messages:
            print(f"    {count:>5}  {message}")


async def _run(args: argparse.Namespace) -> int:
    entries = await load_entries(Path(args.log_path))

    if args.export:
        render = entries_to_csv if args.export == "csv" else entries_to_json
        out = render(entries, include_metadata=args.metadata)
        if args.out:
            Path(args.out).write_text(out, encoding="utf-8")
        else:
            sys.stdout.write(out)
        return 0

    session = IncidentSession()
    analysis = session.analyze(
        entries,
        source=str(Path(args.log_path).resolve()),
        bucket_ms=args.bucket_seconds * 1000,
        max_clusters=args.max_clusters,
    )

    if args.llm:
        cfg = resolve_ollama_config(None)
        if args.ollama_url:
            cfg = replace(cfg, base_url=args.ollama_url.rstrip("/"))
        upgraded = await session.upgrade(analysis, model=args.model, cfg=cfg)
        if upgraded is None:
            print("LLM summary unavailable (Ollama not reachable or returned no result).", file=sys.stderr)
        else:
            analysis = replace(upgraded, llm_summary=sanitize_llm_html(upgraded.llm_summary or ""))

    stats = log_statistics(entries)
    if args.json:
        out = analysis_to_dict(analysis)
        out["statistics"] = statistics_to_dict(stats)
        print(json.dumps(out, indent=2, ensure_ascii=False, default=str))
    else:
        _print_text(analysis)
        _print_overview(stats)
    return 0


def main() -> None:
    p = argparse.ArgumentParser(description="Explain the error-level incident in a log file.")
    p.add_argument("log_path")
    p.add_argument("--json", action="store_true", help="Print the analysis as JSON")
    p.add_argument("--llm", action="store_true", help="Ask a local Ollama model for a narrative")
    p.add_argument("--model", default=None, help="Ollama model id (default: llama3.1:8b)")
    p.add_argument("--ollama-url", default=None, help=f"Ollama base URL (default: {DEFAULT_OLLAMA_URL})")
    p.add_argument("--bucket-seconds", type=_positive_int, default=60, help="Spike bucket width")
    p.add_argument("--max-clusters", type=_positive_int, default=10, help="Clusters to report")
    p.add_argument("--export", choices=["csv", "json"], default=None, help="Export parsed entries instead")
    p.add_argument("--metadata", action="store_true", help="Include export metadata")
    p.add_argument("--out", default=None, help="Export destination (default: stdout)")

    args = p.parse_args()

    try:
        code = asyncio.run(_run(args))
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(2)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(2)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
