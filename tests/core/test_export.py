from __future__ import annotations

import csv
import io
import json
from datetime import UTC, datetime

import pytest

from mcp_log_incident_server.core.export import entries_to_csv, entries_to_json
from mcp_log_incident_server.core.serialization import entry_to_dict

EXPORTED_AT = datetime(2025, 12, 30, 9, 30, 0, tzinfo=UTC)


def test_export_requires_entries() -> None:
    with pytest.raises(ValueError, match="No logs to export"):
        entries_to_json([])
    with pytest.raises(ValueError, match="No logs to export"):
        entries_to_csv([])


def test_entries_to_json(make_entry) -> None:
    entries = [make_entry("db down"), make_entry("retry", is_json=False)]

    doc = json.loads(entries_to_json(entries, include_metadata=True, exported_at=EXPORTED_AT))

    assert doc["metadata"] == {"export_date": "2025-12-30T09:30:00.000Z", "total_entries": 2}
    assert [log["message"] for log in doc["logs"]] == ["db down", "retry"]
    assert doc["logs"][0]["level"] == "ERROR"
    assert doc["logs"][1]["data"] == {"message": "retry"}

    plain = json.loads(entries_to_json(entries))
    assert "metadata" not in plain


def test_entries_to_csv(make_entry) -> None:
    entries = [make_entry("db, down", data={"msg": "db, down", "code": "E1"})]

    out = entries_to_csv(entries, include_metadata=True, exported_at=EXPORTED_AT)
    lines = out.splitlines()

    assert lines[:4] == [
        "# Log Export Metadata",
        "# Export Date: 2025-12-30T09:30:00.000Z",
        "# Total Entries: 1",
        "#",
    ]
    rows = list(csv.DictReader(io.StringIO("\n".join(lines[4:]))))
    assert len(rows) == 1
    assert rows[0]["message"] == "db, down"
    assert json.loads(rows[0]["data"]) == {"msg": "db, down", "code": "E1"}
    assert rows[0]["level"] == "ERROR"


def test_entries_to_csv_without_metadata(make_entry) -> None:
    out = entries_to_csv([make_entry("x")])
    assert out.splitlines()[0] == "id,level,timestamp,message,data,is_json,raw"


def test_entry_to_dict_copies_data(make_entry) -> None:
    entry = make_entry("db down", data={"msg": "db down", "code": "ECONNRESET"})

    out = entry_to_dict(entry)
    out["data"]["code"] = "changed"

    assert entry.data == {"msg": "db down", "code": "ECONNRESET"}
