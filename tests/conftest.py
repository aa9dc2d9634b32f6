import json
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from fireworks_proxy.shared.config import API_KEY_ENV, build_config
from main import create_app

CHAT_PATH = "/api/chat"

COMPLETION = {
    "id": "chatcmpl-1",
    "object": "chat.completion",
    "model": "accounts/fireworks/models/deepseek-v3-0324",
    "choices": [
        {"index": 0, "message": {"role": "assistant", "content": "Hello!"}, "finish_reason": "stop"}
    ],
    "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
}

CHAT_BODY = {
    "model": "accounts/fireworks/models/deepseek-v3-0324",
    "messages": [{"role": "user", "content": "Hello!"}],
}


class StubUpstream:
    """Records outbound requests and answers them with ``responder``."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json=COMPLETION)
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)

    @property
    def chat_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @property
    def payloads(self) -> List[Dict[str, Any]]:
        return [json.loads(r.content) for r in self.chat_requests]


def make_config(api_key: Optional[str] = "fw-test-key-123456", **sections: Any) -> Dict[str, Any]:
    config_data: Dict[str, Any] = {"fireworks": {"api_key": api_key}}
    config_data.update(sections)
    return build_config(config_data)


@pytest.fixture(autouse=True)
def no_env_api_key(monkeypatch):
    monkeypatch.delenv(API_KEY_ENV, raising=False)


@pytest.fixture
def upstream() -> StubUpstream:
    return StubUpstream()


@pytest.fixture
def make_client(upstream):
    """Returns a factory building a TestClient around a stubbed upstream."""
    clients = []

    def factory(config_: Optional[Dict[str, Any]] = None) -> TestClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
        app = create_app(config_ if config_ is not None else make_config(), http_client=http_client)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
