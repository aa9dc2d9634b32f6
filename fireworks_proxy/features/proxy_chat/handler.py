# fireworks_proxy/features/proxy_chat/handler.py
import json
from typing import Any, Dict

from fastapi import Depends, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from fireworks_proxy.dependencies import get_config, get_fireworks_client
from fireworks_proxy.shared.config import logger
from fireworks_proxy.shared.exceptions import (
    BadRequest, ConfigurationError, InternalServerError, MethodNotAllowed, ProxyError
)
from fireworks_proxy.shared.middleware import STREAM_CORS_HEADERS

from .client import FireworksClient
from .command import ProxyChatRequest
from .payload import build_upstream_payload

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    **STREAM_CORS_HEADERS,
}


class ProxyChatHandler:
    def __init__(
        self,
        config: Dict[str, Any] = Depends(get_config),
        fireworks_client: FireworksClient = Depends(get_fireworks_client),
    ):
        self._api_key = config["fireworks"]["api_key"]
        self._defaults = config["defaults"]
        self._client = fireworks_client

    async def handle(self, request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.method != "POST":
            raise MethodNotAllowed()

        try:
            return await self._proxy(request)
        except ProxyError:
            raise
        except Exception as e:
            logger.exception("Server error with %s: %s", self._client.model_label, e)
            raise InternalServerError.from_exception(e, self._client.model_label) from e

    async def _proxy(self, request: Request) -> Response:
        if not self._api_key:
            logger.error("FIREWORKS_API_KEY environment variable not set")
            raise ConfigurationError(
                "API key not configured. Please check server environment variables."
            )

        chat_request = ProxyChatRequest.model_validate(await self._read_body(request))
        missing = chat_request.missing_fields()
        if missing:
            logger.error(
                "Missing required fields in request: model=%s messages=%s",
                bool(chat_request.model), bool(chat_request.messages),
            )
            raise BadRequest(f"Missing required fields: {' and '.join(missing)}")

        messages = chat_request.messages
        logger.info(
            "Processing request: model=%s message_count=%s stream=%s tools_enabled=%s temperature=%s",
            chat_request.model,
            len(messages) if hasattr(messages, "__len__") else None,
            bool(chat_request.stream),
            chat_request.tools_enabled,
            chat_request.temperature,
        )

        payload = build_upstream_payload(chat_request, self._defaults)

        if payload["stream"]:
            upstream = await self._client.open_stream(payload)
            return StreamingResponse(
                self._client.relay_stream(upstream),
                media_type="text/event-stream",
                headers=STREAM_HEADERS,
            )

        completion = await self._client.send_non_stream(payload)
        return JSONResponse(content=completion, status_code=200)

    @staticmethod
    async def _read_body(request: Request) -> Dict[str, Any]:
        body_bytes = await request.body()
        if not body_bytes:
            return {}
        try:
            body = json.loads(body_bytes)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error("Could not parse request body: %s", e)
            raise BadRequest("Request body must be valid JSON") from e
        return body if isinstance(body, dict) else {}
