from __future__ import annotations

import json

import httpx
import pytest

from mcp_log_incident_server.core.analysis import analyze_incident
from mcp_log_incident_server.core.llm import (
    OllamaConfig,
    build_incident_prompt,
    incident_evidence,
    is_ollama_available,
    resolve_ollama_config,
    sanitize_llm_html,
    summarize_incident_with_ollama,
)
from mcp_log_incident_server.core.llm.models import ENV_OLLAMA_TIMEOUT, ENV_OLLAMA_URL


def _client(handler, calls: list[httpx.Request] | None = None) -> httpx.AsyncClient:
    def _record(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return handler(request)

    return httpx.AsyncClient(base_url="http://ollama.test", transport=httpx.MockTransport(_record))


def _ollama(generate: httpx.Response, tags: httpx.Response | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return tags or httpx.Response(200, json={"models": []})
        if request.url.path == "/api/generate":
            return generate
        return httpx.Response(404)

    return handler


@pytest.fixture
def analysis(make_entry):
    return analyze_incident([make_entry("db timeout 1"), make_entry("db timeout 2")])


@pytest.mark.asyncio
async def test_summarize_returns_stripped_text(analysis) -> None:
    calls: list[httpx.Request] = []
    handler = _ollama(httpx.Response(200, json={"response": "  <p>Database outage</p>\n"}))

    async with _client(handler, calls) as client:
        text = await summarize_incident_with_ollama(analysis, cfg=OllamaConfig(), client=client)

    assert text == "<p>Database outage</p>"
    assert [r.url.path for r in calls] == ["/api/tags", "/api/generate"]


@pytest.mark.asyncio
async def test_generate_request_body(analysis) -> None:
    calls: list[httpx.Request] = []
    handler = _ollama(httpx.Response(200, json={"response": "ok"}))

    async with _client(handler, calls) as client:
        await summarize_incident_with_ollama(analysis, "custom:1b", cfg=OllamaConfig(), client=client)

    body = json.loads(calls[-1].content)
    assert calls[-1].method == "POST"
    assert body["model"] == "custom:1b"
    assert body["stream"] is False
    assert body["options"] == {"temperature": 0.2}
    assert analysis.summary in body["prompt"]


@pytest.mark.asyncio
async def test_health_failure_skips_generation(analysis) -> None:
    calls: list[httpx.Request] = []
    handler = _ollama(httpx.Response(200, json={"response": "x"}), tags=httpx.Response(503))

    async with _client(handler, calls) as client:
        text = await summarize_incident_with_ollama(analysis, cfg=OllamaConfig(), client=client)

    assert text is None
    assert [r.url.path for r in calls] == ["/api/tags"]


@pytest.mark.asyncio
async def test_unreachable_service_returns_none(analysis) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        assert await summarize_incident_with_ollama(analysis, cfg=OllamaConfig(), client=client) is None
        assert await is_ollama_available(OllamaConfig(), client=client) is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="model not loaded"),
        httpx.Response(200, json={"done": True}),
        httpx.Response(200, json={"response": 42}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_bad_generate_responses_return_none(analysis, response: httpx.Response) -> None:
    async with _client(_ollama(response)) as client:
        assert await summarize_incident_with_ollama(analysis, cfg=OllamaConfig(), client=client) is None


@pytest.mark.asyncio
async def test_is_ollama_available() -> None:
    async with _client(_ollama(httpx.Response(200, json={}))) as client:
        assert await is_ollama_available(OllamaConfig(), client=client) is True


def test_resolve_config_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv(ENV_OLLAMA_URL, "http://gpu-box:11434/")
    monkeypatch.setenv("LOG_INCIDENT_OLLAMA_MODEL", "mistral:7b")
    monkeypatch.setenv(ENV_OLLAMA_TIMEOUT, "30")

    cfg = resolve_ollama_config(None)

    assert cfg.base_url == "http://gpu-box:11434"
    assert cfg.model == "mistral:7b"
    assert cfg.timeout_s == 30.0


def test_resolve_config_defaults(monkeypatch) -> None:
    for name in (ENV_OLLAMA_URL, "LOG_INCIDENT_OLLAMA_MODEL", ENV_OLLAMA_TIMEOUT):
        monkeypatch.delenv(name, raising=False)

    cfg = resolve_ollama_config(None)

    assert cfg.base_url == "http://localhost:11434"
    assert cfg.model == "llama3.1:8b"
    assert cfg.temperature == 0.2


@pytest.mark.parametrize(
    ("name", "value"),
    [
        (ENV_OLLAMA_URL, "ftp://example"),
        (ENV_OLLAMA_TIMEOUT, "soon"),
        (ENV_OLLAMA_TIMEOUT, "0"),
    ],
)
def test_resolve_config_rejects_invalid_env(monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        resolve_ollama_config(None)


def test_prompt_limits_evidence(make_entry) -> None:
    entries = [make_entry(f"failure kind {chr(97 + i)}") for i in range(8)]
    analysis = analyze_incident(entries)

    evidence = incident_evidence(analysis, max_clusters=3, max_categories=1)
    prompt = build_incident_prompt(analysis, max_clusters=3)

    assert evidence["total"] == 8
    assert len(evidence["topClusters"]) == 3
    assert len(evidence["categories"]) == 1
    assert evidence["heuristic"] == analysis.summary
    assert "EVIDENCE (JSON):" in prompt
    assert "Return ONLY the HTML content" in prompt


def test_sanitize_llm_html() -> None:
    raw = (
        "```html\n"
        '<div class="incident-section" onclick="steal()">hi</div>'
        "<script>alert(1)</script>"
        '<a href="javascript:alert(1)">x</a>'
        "<p>online = many</p>\n"
        "```"
    )

    assert sanitize_llm_html(raw) == (
        '<div class="incident-section">hi</div><a href="#">x</a><p>online = many</p>'
    )


def test_sanitize_drops_unclosed_script_and_style() -> None:
    assert sanitize_llm_html("<p>a</p><style>p{}</style><script>alert(1)") == "<p>a</p>"


@pytest.mark.parametrize(
    "raw",
    [
        "<p>x</p><img/onerror=alert(1) src=x>",
        '<p>x</p><img title="a>b" onerror="alert(1)" src=x>',
        '<p>x</p><IMG SRC=x OnError="alert(1)">',
    ],
)
def test_sanitize_strips_handlers_the_browser_would_see(raw: str) -> None:
    out = sanitize_llm_html(raw)

    assert "onerror" not in out.lower()
    assert "alert" not in out
    assert out.startswith("<p>x</p><img")


def test_sanitize_neutralizes_spaced_javascript_url() -> None:
    out = sanitize_llm_html('<a href="  JavaScript:alert(1)">x</a>')

    assert out == '<a href="#">x</a>'


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/api/tags", "/api/generate"])
@pytest.mark.parametrize("exc", [httpx.ReadTimeout, httpx.ConnectTimeout])
async def test_timeouts_return_none(analysis, path: str, exc: type[httpx.TimeoutException]) -> None:
    calls: list[httpx.Request] = []
    ok = _ollama(httpx.Response(200, json={"response": "<p>late</p>"}))

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == path:
            raise exc("timed out", request=request)
        return ok(request)

    async with _client(handler, calls) as client:
        text = await summarize_incident_with_ollama(analysis, cfg=OllamaConfig(), client=client)

    assert text is None
    if path == "/api/tags":
        assert [r.url.path for r in calls] == ["/api/tags"]
    else:
        assert [r.url.path for r in calls] == ["/api/tags", "/api/generate"]


@pytest.mark.asyncio
async def test_invalid_base_url_returns_none(analysis) -> None:
    cfg = OllamaConfig(base_url="http://[::1")

    assert await summarize_incident_with_ollama(analysis, cfg=cfg) is None
    assert await is_ollama_available(cfg) is False


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("name", "value"),
    [
        (ENV_OLLAMA_TIMEOUT, "soon"),
        (ENV_OLLAMA_URL, "http://[::1"),
    ],
)
async def test_invalid_env_config_returns_none(analysis, monkeypatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    assert await summarize_incident_with_ollama(analysis) is None
    assert await is_ollama_available() is False


def test_resolve_config_rejects_malformed_url(monkeypatch) -> None:
    monkeypatch.setenv(ENV_OLLAMA_URL, "http://[::1")
    with pytest.raises(ValueError, match=ENV_OLLAMA_URL):
        resolve_ollama_config(None)
