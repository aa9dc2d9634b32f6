#!/usr/bin/env python3
"""
Fireworks Chat Proxy
Forwards chat-completion requests to the Fireworks inference API and relays
buffered JSON or server-sent-event streams back to the caller.
"""

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
import uvicorn

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fireworks_proxy.shared.config import config, logger
from fireworks_proxy.shared.exceptions import InternalServerError, ProxyError
from fireworks_proxy.shared.middleware import (
    CORS_HEADERS, RequestIDMiddleware, add_cors_headers, add_process_time_header
)
from fireworks_proxy.shared.utils import get_local_ip, mask_key
from fireworks_proxy.features.health_check.endpoints import router as health_check_router
from fireworks_proxy.features.metrics.endpoints import router as metrics_router
from fireworks_proxy.features.proxy_chat.endpoints import router as proxy_chat_router


def build_http_client(config_: Dict[str, Any]) -> httpx.AsyncClient:
    """Creates the shared outbound client, routed through the request proxy when enabled."""
    client_kwargs = {"timeout": config_["fireworks"]["timeout"]}
    if config_["requestProxy"]["enabled"] and config_["requestProxy"]["url"]:
        proxy_url = config_["requestProxy"]["url"]
        client_kwargs["proxy"] = proxy_url
        logger.info("Using proxy for httpx client: %s", proxy_url)
    return httpx.AsyncClient(**client_kwargs)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    return JSONResponse(content=exc.to_body(), status_code=exc.status_code, headers=CORS_HEADERS)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: %s", exc)
    error = InternalServerError.from_exception(exc, request.app.state.config["fireworks"]["model_label"])
    return JSONResponse(content=error.to_body(), status_code=error.status_code, headers=CORS_HEADERS)


def create_app(
    config_: Optional[Dict[str, Any]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Builds the proxy application, falling back to the loaded config and a lifespan-owned client."""
    config_ = config_ if config_ is not None else config

    @asynccontextmanager
    async def lifespan(app_: FastAPI):
        """Manage application lifespan resources."""
        owns_client = getattr(app_.state, "http_client", None) is None
        if owns_client:
            app_.state.http_client = build_http_client(config_)
        logger.info("Application startup complete")
        yield
        if owns_client:
            await app_.state.http_client.aclose()
            app_.state.http_client = None
        logger.info("Application shutdown complete")

    app_ = FastAPI(
        title="Fireworks Chat Proxy",
        description="Proxies chat completions to the Fireworks inference API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app_.state.config = config_
    app_.state.http_client = http_client

    app_.include_router(health_check_router, tags=["Monitoring"])
    app_.include_router(metrics_router)
    app_.include_router(proxy_chat_router, tags=["Proxy"])

    app_.add_exception_handler(ProxyError, proxy_error_handler)
    app_.add_exception_handler(Exception, unhandled_error_handler)

    app_.middleware("http")(add_cors_headers)
    app_.middleware("http")(add_process_time_header)
    app_.add_middleware(RequestIDMiddleware)
    return app_


app = create_app()

if __name__ == "__main__":
    api_key = config["fireworks"]["api_key"]
    if not api_key:
        logger.error(
            "No Fireworks API key found in config.yml or FIREWORKS_API_KEY environment variable. "
            "Chat requests will fail until one is configured."
        )
    else:
        logger.info("Using Fireworks API key %s", mask_key(api_key))

    host = config["server"]["host"]
    port = config["server"]["port"]

    display_host = get_local_ip() if host == "0.0.0.0" else host
    logger.warning("Starting Fireworks Proxy on %s:%s", host, port)
    logger.warning("Chat URL: http://%s:%s/api/chat", display_host, port)
    logger.warning("Metrics: http://%s:%s/metrics", display_host, port)

    log_config = uvicorn.config.LOGGING_CONFIG
    http_log_level = config["server"].get("http_log_level", "INFO").upper()
    log_config["loggers"]["uvicorn.access"]["level"] = http_log_level

    uvicorn.run(
        app,
        host=host,
        port=port,
        log_config=log_config,
        timeout_graceful_shutdown=30,
        server_header=False
    )
