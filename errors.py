"""Proxy error type and its JSON rendering."""

from typing import Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


class ProxyError(Exception):
    """Error that terminates a proxy request with `{"error": message}`."""

    def __init__(self, message: str, status_code: int = 400, headers: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.headers = headers or {}

    @classmethod
    def bad_request(cls, message: str) -> "ProxyError":
        return cls(message, status_code=400)

    @classmethod
    def forbidden(cls, message: str) -> "ProxyError":
        return cls(message, status_code=403)

    @classmethod
    def rate_limited(cls, reset_epoch_seconds: int) -> "ProxyError":
        """Create a 429 error carrying the window reset time."""
        return cls(
            "Too Many Requests",
            status_code=429,
            headers={"X-RateLimit-Reset": str(reset_epoch_seconds)},
        )

    @classmethod
    def upstream_failure(cls) -> "ProxyError":
        # Upstream details are logged, never returned
        return cls("Failed to proxy request", status_code=500)

    @classmethod
    def upstream_timeout(cls) -> "ProxyError":
        return cls("Request timeout", status_code=504)


async def proxy_error_handler(request: Request, exc: ProxyError) -> JSONResponse:
    """Render a ProxyError as a JSON error body."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=exc.headers)
