# fireworks_proxy/features/proxy_chat/client.py
import httpx
from typing import AsyncGenerator, Dict, Any

from fireworks_proxy.shared.config import logger
from fireworks_proxy.shared.exceptions import StreamTransportFault, UpstreamError
from fireworks_proxy.shared.metrics import (
    COMPLETION_TOKENS, PROMPT_TOKENS, STREAM_INTERRUPTIONS, UPSTREAM_ERRORS
)


class FireworksClient:
    """Sends one chat-completion request to the Fireworks API. No retries."""

    def __init__(self, http_client: httpx.AsyncClient, settings: Dict[str, Any]):
        self._client = http_client
        self._api_key = settings["api_key"]
        self._url = f"{settings['base_url'].rstrip('/')}/chat/completions"
        self._user_agent = settings["user_agent"]
        self.model_label = settings["model_label"]

    def _headers(self, stream: bool) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "User-Agent": self._user_agent,
        }
        if stream:
            headers["Accept"] = "text/event-stream"
        return headers

    def _upstream_error(self, status_code: int, error_text: str, mode: str) -> UpstreamError:
        logger.error("Fireworks API Error (%s): %s %s", mode, status_code, error_text)
        UPSTREAM_ERRORS.labels(status=str(status_code)).inc()
        return UpstreamError.from_response(status_code, error_text, self.model_label)

    def _record_usage(self, data: Any) -> None:
        usage = data.get("usage") if isinstance(data, dict) else None
        if not isinstance(usage, dict):
            return
        logger.info(
            "%s Usage: prompt_tokens=%s completion_tokens=%s total_tokens=%s",
            self.model_label,
            usage.get("prompt_tokens"),
            usage.get("completion_tokens"),
            usage.get("total_tokens"),
        )
        for counter, field in ((PROMPT_TOKENS, "prompt_tokens"), (COMPLETION_TOKENS, "completion_tokens")):
            tokens = usage.get(field)
            if isinstance(tokens, int) and tokens > 0:
                counter.inc(tokens)

    async def send_non_stream(self, payload: Dict[str, Any]) -> Any:
        """Sends a buffered request and returns the decoded JSON body."""
        response = await self._client.post(self._url, json=payload, headers=self._headers(stream=False))
        if not response.is_success:
            raise self._upstream_error(response.status_code, response.text, "Non-streaming")

        data = response.json()
        self._record_usage(data)
        return data

    async def open_stream(self, payload: Dict[str, Any]) -> httpx.Response:
        """
        Starts a streaming request and returns the open upstream response.

        Raises UpstreamError before any byte is relayed when the upstream
        rejects the request or answers without a body. The caller owns the
        returned response and must drain it with ``relay_stream``.
        """
        request = self._client.build_request(
            "POST", self._url, json=payload, headers=self._headers(stream=True)
        )
        response = await self._client.send(request, stream=True)

        if not response.is_success:
            try:
                await response.aread()
            finally:
                await response.aclose()
            raise self._upstream_error(response.status_code, response.text, "Streaming")

        if response.status_code == 204 or response.headers.get("content-length") == "0":
            await response.aclose()
            logger.error("Fireworks API returned no response body for a stream")
            raise UpstreamError(f"No response body from {self.model_label} API", status_code=500)

        logger.info("Stream started successfully for model '%s'.", payload.get("model"))
        return response

    async def relay_stream(self, response: httpx.Response) -> AsyncGenerator[bytes, None]:
        """Yields upstream chunks as they arrive, ending with an error event on failure."""
        try:
            async for chunk in response.aiter_bytes():
                yield chunk
        except Exception as e:
            logger.error("Streaming error with %s: %s", self.model_label, e)
            STREAM_INTERRUPTIONS.inc()
            yield StreamTransportFault(str(e)).as_sse()
        finally:
            await response.aclose()
