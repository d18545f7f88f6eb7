"""CSV and JSON export of parsed entries."""

from __future__ import annotations

import csv
import io
import json
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from .models import LogEntry
from .serialization import entry_to_dict
from .timestamps import format_iso, utc_now


def _require_entries(entries: Sequence[LogEntry]) -> None:
    if not entries:
        raise ValueError("No logs to export")


def _metadata(entries: Sequence[LogEntry], exported_at: datetime | None) -> dict[str, Any]:
    return {
        "export_date": format_iso(exported_at or utc_now()),
        "total_entries": len(entries),
    }


def entries_to_json(
    entries: Sequence[LogEntry],
    *,
    include_metadata: bool = False,
    exported_at: datetime | None = None,
) -> str:
    """Render entries as ``{"metadata"?: {...}, "logs": [...]}``."""
    _require_entries(entries)
    doc: dict[str, Any] = {}
    if include_metadata:
        doc["metadata"] = _metadata(entries, exported_at)
    doc["logs"] = [entry_to_dict(e) for e in entries]
    return json.dumps(doc, indent=2, ensure_ascii=False, default=str)


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    return value


def entries_to_csv(
    entries: Sequence[LogEntry],
    *,
    include_metadata: bool = False,
    exported_at: datetime | None = None,
) -> str:
    """Render entries as CSV; columns are the union of row keys in first-seen order."""
    _require_entries(entries)
    rows = [entry_to_dict(e) for e in entries]
    headers: list[str] = []
    for row in rows:
        for k in row:
            if k not in headers:
                headers.append(k)

    buf = io.StringIO()
    if include_metadata:
        meta = _metadata(entries, exported_at)
        buf.write("# Log Export Metadata\n")
        buf.write(f"# Export Date: {meta['export_date']}\n")
        buf.write(f"# Total Entries: {meta['total_entries']}\n")
        buf.write("#\n")

    writer = csv.DictWriter(buf, fieldnames=headers, lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _csv_value(row.get(k)) for k in headers})
    return buf.getvalue()
