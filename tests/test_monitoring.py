import logging

import httpx
from prometheus_client import REGISTRY

from conftest import CHAT_BODY, CHAT_PATH, COMPLETION, make_config


def test_health_reports_ok(client, upstream):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "services": {"api_key": "configured", "fireworks_api": "up"}}
    assert upstream.requests[0].method == "HEAD"


def test_health_reports_missing_key_and_unreachable_upstream(make_client, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)
    upstream.responder = refuse
    client = make_client(make_config(api_key=None))

    resp = client.get("/health")

    assert resp.json() == {"status": "error", "services": {"api_key": "missing", "fireworks_api": "down"}}


def test_metrics_count_upstream_errors(client, upstream):
    upstream.responder = lambda request: httpx.Response(502, text="bad gateway")
    client.post(CHAT_PATH, json=CHAT_BODY)

    resp = client.get("/metrics")

    assert resp.status_code == 200
    assert 'proxy_upstream_errors_total{status="502"}' in resp.text


def test_request_id_is_echoed(client):
    resp = client.options(CHAT_PATH, headers={"X-Request-ID": "abc-123"})

    assert resp.headers["x-request-id"] == "abc-123"
    assert "x-process-time" in resp.headers


def sample(name: str) -> float:
    return REGISTRY.get_sample_value(name) or 0.0


def test_usage_is_recorded(client, caplog):
    prompt_before = sample("proxy_prompt_tokens_total")
    completion_before = sample("proxy_completion_tokens_total")

    with caplog.at_level(logging.INFO, logger="fireworks-proxy"):
        client.post(CHAT_PATH, json=CHAT_BODY)

    assert sample("proxy_prompt_tokens_total") - prompt_before == 5
    assert sample("proxy_completion_tokens_total") - completion_before == 2
    assert "prompt_tokens=5 completion_tokens=2 total_tokens=7" in caplog.text


def test_no_usage_record_without_usage(client, upstream, caplog):
    completion = {key: value for key, value in COMPLETION.items() if key != "usage"}
    upstream.responder = lambda request: httpx.Response(200, json=completion)
    prompt_before = sample("proxy_prompt_tokens_total")
    completion_before = sample("proxy_completion_tokens_total")

    with caplog.at_level(logging.INFO, logger="fireworks-proxy"):
        resp = client.post(CHAT_PATH, json=CHAT_BODY)

    assert resp.json() == completion
    assert sample("proxy_prompt_tokens_total") == prompt_before
    assert sample("proxy_completion_tokens_total") == completion_before
    assert "Usage:" not in caplog.text


def test_interrupted_stream_is_counted(client, upstream):
    async def body():
        yield b'data: {"n": 1}\n\n'
        raise httpx.ReadError("connection reset")

    upstream.responder = lambda request: httpx.Response(200, content=body())
    before = sample("proxy_stream_interruptions_total")

    client.post(CHAT_PATH, json={**CHAT_BODY, "stream": True})

    assert sample("proxy_stream_interruptions_total") - before == 1
