from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from mcp_log_incident_server.core.models import LogEntry, LogLevel
from mcp_log_incident_server.core.timestamps import format_iso

BASE_TIME = datetime(2025, 12, 30, 8, 0, 0, tzinfo=UTC)


@pytest.fixture
def fixed_now() -> Callable[[], datetime]:
    return lambda: BASE_TIME


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    """Build entries with sequential ids; ``offset_s`` is seconds after BASE_TIME."""
    counter = iter(range(1_000_000))

    def _make(
        message: str = "boom",
        *,
        level: LogLevel | str = LogLevel.ERROR,
        offset_s: float = 0,
        data: dict[str, Any] | None = None,
        is_json: bool = True,
        timestamp: str | None = None,
    ) -> LogEntry:
        ts = timestamp or format_iso(BASE_TIME + timedelta(seconds=offset_s))
        payload = data if data is not None else {"level": 50, "msg": message}
        return LogEntry(
            id=next(counter),
            level=level,
            timestamp=ts,
            message=message,
            data=payload if is_json else {"message": message},
            raw=message,
            is_json=is_json,
        )

    return _make


@pytest.fixture
def write_log() -> Callable[[Path], None]:
    def _write(path: Path) -> None:
        path.write_text(
            "\n".join(
                [
                    '{"level":30,"time":1767081600000,"msg":"service started","service":"orders"}',
                    '{"level":50,"time":1767081601000,"msg":"db connection timeout after 5000 ms",'
                    '"code":"ETIMEDOUT","service":"orders"}',
                    '{"level":50,"time":1767081602000,"msg":"db connection timeout after 5012 ms",'
                    '"code":"ETIMEDOUT","service":"orders"}',
                    "TypeError: Cannot read properties of undefined (reading 'id')",
                    "    at handler (/srv/app/routes/orders.js:42:17)",
                    '{"level":"warn","time":"2025-12-30T08:00:03.000Z","msg":"retrying request"}',
                    '{"level":"fatal","time":"2025-12-30T08:00:04.000Z","msg":"unauthorized token",'
                    '"path":"/api/v1/orders","method":"POST"}',
                ]
            )
            + "\n",
            encoding="utf-8",
        )

    return _write
