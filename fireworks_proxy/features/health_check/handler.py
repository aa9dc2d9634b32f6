import httpx
from typing import Any, Dict
from fastapi import Depends
from fireworks_proxy.dependencies import get_config, get_http_client
from fireworks_proxy.shared.config import logger
from .query import HealthCheckResponse, ServiceStatus

class HealthCheckHandler:
    def __init__(
        self,
        http_client: httpx.AsyncClient = Depends(get_http_client),
        config: Dict[str, Any] = Depends(get_config),
    ):
        self._http_client = http_client
        self._settings = config["fireworks"]

    async def handle(self) -> HealthCheckResponse:
        api_key = "configured" if self._settings["api_key"] else "missing"

        # Check Fireworks API status
        try:
            health_resp = await self._http_client.head(
                f"{self._settings['base_url'].rstrip('/')}/models",
                timeout=5.0
            )
            fireworks_api = "up" if health_resp.status_code < 500 else "down"
        except httpx.HTTPError as e:
            logger.error("Fireworks API health check failed: %s", str(e))
            fireworks_api = "down"

        services = ServiceStatus(api_key=api_key, fireworks_api=fireworks_api)
        healthy = api_key == "configured" and fireworks_api == "up"
        return HealthCheckResponse(status="ok" if healthy else "error", services=services)
