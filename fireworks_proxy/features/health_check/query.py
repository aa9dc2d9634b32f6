from typing import Literal

from pydantic import BaseModel


class ServiceStatus(BaseModel):
    api_key: Literal["configured", "missing"]
    fireworks_api: Literal["up", "down"]


class HealthCheckResponse(BaseModel):
    status: Literal["ok", "error"]
    services: ServiceStatus
