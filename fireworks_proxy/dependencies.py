#!/usr/bin/env python3
"""
Dependency provider functions for the application.
"""

from typing import Any, Dict

from fastapi import Request
import httpx

from fireworks_proxy.features.proxy_chat.client import FireworksClient


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Returns the shared httpx.AsyncClient instance."""
    return request.app.state.http_client


def get_config(request: Request) -> Dict[str, Any]:
    """Returns the configuration the application was created with."""
    return request.app.state.config


def get_fireworks_client(request: Request) -> FireworksClient:
    """Returns a FireworksClient bound to the shared HTTP client."""
    return FireworksClient(
        http_client=get_http_client(request),
        settings=get_config(request)["fireworks"],
    )
