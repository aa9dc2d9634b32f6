#!/usr/bin/env python3
"""
Smoke test script for the Fireworks chat proxy.
Exercises a running proxy using configuration from config.yml.
"""

import asyncio
import json
import os
from typing import Dict, Any

import httpx
import yaml

MODEL = "accounts/fireworks/models/deepseek-v3-0324"
CHAT_PATH = "/api/chat"

def load_config() -> Dict[str, Any]:
    """Load configuration from config.yml, falling back to defaults"""
    try:
        with open(os.environ.get("FIREWORKS_PROXY_CONFIG", "config.yml"), encoding="utf-8") as file:
            return yaml.safe_load(file) or {}
    except FileNotFoundError:
        return {}

async def test_feature(feature_name: str, test_func: callable):
    """Run a feature test with formatted output"""
    print(f"\n=== Testing {feature_name} ===")
    try:
        await test_func()
        print(f"✅ {feature_name} test passed")
    except Exception as e:
        print(f"❌ {feature_name} test failed: {str(e)}")
        raise

async def test_preflight(client: httpx.AsyncClient, base_url: str):
    """Test the CORS preflight - no upstream call is made"""
    resp = await client.options(f"{base_url}{CHAT_PATH}")
    assert resp.status_code == 200, f"Expected 200, got {resp.status_code}"
    assert resp.headers.get("access-control-allow-origin") == "*", "Missing CORS headers"

async def test_health(client: httpx.AsyncClient, base_url: str):
    """Test the health endpoint"""
    resp = await client.get(f"{base_url}/health")
    resp.raise_for_status()
    print(f"Health: {resp.json()}")

async def test_proxy_chat(client: httpx.AsyncClient, base_url: str, stream: bool):
    """Test the chat proxy in buffered or streaming mode"""
    url = f"{base_url}{CHAT_PATH}"
    request_data = {
        "model": MODEL,
        "messages": [{"role": "user", "content": "Hello!"}],
        "stream": stream,
    }

    if stream:
        async with client.stream("POST", url, json=request_data) as resp:
            resp.raise_for_status()
            async for line in resp.aiter_lines():
                line = line.strip()
                if not line.startswith("data: "):
                    continue
                content = line[6:].strip()
                if content == "[DONE]":
                    continue
                data = json.loads(content)
                assert "error" not in data, f"Stream reported an error: {data}"
                print(".", end="", flush=True)
        print("\nStream completed")
    else:
        resp = await client.post(url, json=request_data)
        resp.raise_for_status()
        print(f"Chat completion received: {resp.json().get('usage')}")

async def run_tests():
    """Run all feature tests"""
    config = load_config()
    server_config = config.get("server", {})

    host = server_config.get("host", "127.0.0.1")
    host = "127.0.0.1" if host == "0.0.0.0" else host
    port = server_config.get("port", 5555)
    base_url = f"http://{host}:{port}"

    async with httpx.AsyncClient(timeout=60.0) as client:
        await test_feature("Preflight", lambda: test_preflight(client, base_url))
        await test_feature("Health", lambda: test_health(client, base_url))
        await test_feature("Proxy Chat", lambda: test_proxy_chat(client, base_url, stream=False))
        await test_feature("Proxy Chat (stream)", lambda: test_proxy_chat(client, base_url, stream=True))

if __name__ == "__main__":
    print("Running Fireworks Proxy smoke tests")
    asyncio.run(run_tests())
