"""
Error taxonomy for the Fireworks chat proxy.

Every failure the proxy reports is a ProxyError. The application renders them
as ``{"error": <category>, "message": <text>}`` with the carried status code.
"""

from typing import Any, Dict, Optional

import httpx


class ProxyError(Exception):
    """Base class for failures converted directly into an HTTP response."""

    status_code: int = 500
    error: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message or self.error)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.message is not None:
            body["message"] = self.message
        return body


class MethodNotAllowed(ProxyError):
    status_code = 405
    error = "Method not allowed"


class ConfigurationError(ProxyError):
    status_code = 500
    error = "Server configuration error"


class BadRequest(ProxyError):
    status_code = 400
    error = "Bad request"


class UpstreamError(ProxyError):
    """Upstream answered with a non-success status; the status is relayed."""

    error = "API request failed"

    @classmethod
    def from_response(cls, status_code: int, error_text: str, model_label: str) -> "UpstreamError":
        return cls(translate_upstream_error(status_code, error_text, model_label), status_code=status_code)


class InternalServerError(ProxyError):
    status_code = 500
    error = "Internal server error"

    @classmethod
    def from_exception(cls, exc: BaseException, model_label: str) -> "InternalServerError":
        return cls(describe_failure(exc, model_label))


class StreamTransportFault(ProxyError):
    """
    Failure while relaying stream bytes after the response headers were sent.
    The status is already committed, so it is only ever reported in-band.
    """

    error = "Streaming interrupted"

    def as_sse(self) -> bytes:
        return f'data: {{"error": "{self.error}"}}\n\n'.encode("utf-8")


UPSTREAM_ERROR_MESSAGES = {
    429: "Rate limit exceeded. {label} has usage limits.",
    401: "Invalid API key or insufficient permissions for {label}.",
    400: "Invalid request format for {label}. Check parameters.",
    503: "{label} service temporarily unavailable. Try again later.",
}


def translate_upstream_error(status_code: int, error_text: str, model_label: str) -> str:
    """Returns user-facing text for known statuses, the raw upstream text otherwise."""
    template = UPSTREAM_ERROR_MESSAGES.get(status_code)
    if template is None:
        return error_text
    return template.format(label=model_label)


def describe_failure(exc: BaseException, model_label: str) -> str:
    """Best-effort human-readable description of an unexpected failure."""
    text = str(exc)
    # httpx timeouts are transport errors too, so they are checked first.
    if isinstance(exc, httpx.TimeoutException) or "timeout" in text.lower():
        return f"Request timeout with {model_label}. The model may be processing a complex request."
    if isinstance(exc, httpx.TransportError):
        return f"Network error connecting to {model_label}. Check your internet connection."
    return text or exc.__class__.__name__
