#!/usr/bin/env python3
"""
Configuration module for the Fireworks chat proxy.
Loads settings from a YAML file and initializes logging with Pydantic validation.
"""

import os
import sys
import logging
from typing import Dict, Any, Optional

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

CONFIG_FILE = os.environ.get("FIREWORKS_PROXY_CONFIG", "config.yml")
API_KEY_ENV = "FIREWORKS_API_KEY"


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    host: str = "0.0.0.0"
    port: int = 5555
    log_level: str = "INFO"
    http_log_level: str = "INFO"


class FireworksConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    api_key: Optional[str] = None
    base_url: str = "https://api.fireworks.ai/inference/v1"
    user_agent: str = "Advanced-CoD-Studio/1.0"
    model_label: str = "DeepSeek-V3-0324"
    timeout: float = 600.0


class GenerationDefaults(BaseModel):
    """Values substituted for absent (falsy) generation parameters."""
    model_config = ConfigDict(extra="allow")

    temperature: float = 0.3
    top_p: float = 0.9
    top_k: int = 40
    max_tokens: int = 8192
    presence_penalty: float = 0
    frequency_penalty: float = 0
    stream: bool = False


class RequestProxyConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    enabled: bool = False
    url: Optional[str] = None


def build_config(config_data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate each configuration section and return them as plain dicts."""
    config_data = dict(config_data)

    # Environment variable override for the API key
    if os.environ.get(API_KEY_ENV):
        config_data["fireworks"] = {**(config_data.get("fireworks") or {}), "api_key": os.environ[API_KEY_ENV]}

    config_data["server"] = ServerConfig(**(config_data.get("server") or {})).model_dump()
    config_data["fireworks"] = FireworksConfig(**(config_data.get("fireworks") or {})).model_dump()
    config_data["defaults"] = GenerationDefaults(**(config_data.get("defaults") or {})).model_dump()
    config_data["requestProxy"] = RequestProxyConfig(**(config_data.get("requestProxy") or {})).model_dump()
    return config_data


def load_config(path: str = CONFIG_FILE) -> Dict[str, Any]:
    """Load and validate configuration with Pydantic models."""
    try:
        with open(path, encoding="utf-8") as file:
            config_data = yaml.safe_load(file) or {}
    except FileNotFoundError:
        # Environment-only deployments are valid, a missing key is reported per request.
        config_data = {}
    except yaml.YAMLError as e:
        print(f"Error in configuration: {e}")
        sys.exit(1)

    try:
        return build_config(config_data)
    except ValidationError as e:
        print(f"Error in configuration: {e}")
        sys.exit(1)


def setup_logging(config_: Dict[str, Any]) -> logging.Logger:
    """Configure logging based on validated configuration."""
    log_level = config_["server"]["log_level"]
    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level_int,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    logger_ = logging.getLogger("fireworks-proxy")
    logger_.info("Logging level set to %s", log_level)
    return logger_


# Load and validate configuration once at startup
config = load_config()
logger = setup_logging(config)
