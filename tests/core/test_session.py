from __future__ import annotations

import httpx
import pytest

from mcp_log_incident_server.core.analysis import IncidentSession, analyze_incident
from mcp_log_incident_server.core.llm import OllamaConfig


def test_analyze_tags_request(make_entry) -> None:
    session = IncidentSession()

    first = session.analyze([make_entry()], source="a.log")
    second = session.analyze([make_entry()], source="b.log", bucket_ms=1000)

    assert (first.request_id, first.source) == (1, "a.log")
    assert (second.request_id, second.source) == (2, "b.log")
    assert session.current_request_id == 2
    assert not session.is_current(first)
    assert session.is_current(second)


def test_stale_summary_is_discarded(make_entry) -> None:
    session = IncidentSession()
    old = session.analyze([make_entry("db down")], source="app.log")
    session.analyze([make_entry("db down")], source="app.log")

    assert session.apply_llm_summary(old, "<p>late</p>") is None


def test_summary_applies_to_current_analysis(make_entry) -> None:
    session = IncidentSession()
    analysis = session.analyze([make_entry("db down")], source="app.log")

    upgraded = session.apply_llm_summary(analysis, "<p>now</p>")

    assert upgraded is not None
    assert upgraded.llm_summary == "<p>now</p>"
    assert upgraded.summary == analysis.summary
    assert session.apply_llm_summary(analysis, None) is None


def test_untagged_analysis_is_never_current(make_entry) -> None:
    session = IncidentSession()
    session.analyze([make_entry()])

    assert not session.is_current(analyze_incident([make_entry()]))


@pytest.mark.asyncio
async def test_upgrade_round_trip(make_entry) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": []})
        return httpx.Response(200, json={"response": "<p>report</p>"})

    session = IncidentSession()
    analysis = session.analyze([make_entry("db down")], source="app.log")

    async with httpx.AsyncClient(
        base_url="http://ollama.test", transport=httpx.MockTransport(handler)
    ) as client:
        upgraded = await session.upgrade(analysis, cfg=OllamaConfig(), client=client)

    assert upgraded is not None
    assert upgraded.llm_summary == "<p>report</p>"
    assert upgraded.request_id == analysis.request_id
