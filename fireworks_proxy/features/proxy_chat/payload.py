from typing import Any, Dict

from .command import ProxyChatRequest

GENERATION_PARAMETERS = (
    "temperature",
    "top_p",
    "top_k",
    "max_tokens",
    "presence_penalty",
    "frequency_penalty",
    "stream",
)


def or_default(value: Any, default: Any) -> Any:
    """
    Returns ``value`` unless it is falsy.

    Known behaviour: an explicit ``0`` or ``False`` counts as absent, so a
    caller asking for ``temperature=0`` gets the default temperature.
    """
    return value if value else default


def build_upstream_payload(request: ProxyChatRequest, defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Builds the body sent to the inference API from an inbound request."""
    payload: Dict[str, Any] = {
        "model": request.model,
        "messages": request.messages,
    }
    for name in GENERATION_PARAMETERS:
        payload[name] = or_default(getattr(request, name), defaults[name])

    if request.tools_enabled:
        payload["tools"] = request.tools
        if request.tool_choice:
            payload["tool_choice"] = request.tool_choice

    return payload
