"""CORS headers for the proxy endpoint."""

from typing import Dict, Sequence

from fastapi import Request

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, X-Turnstile-Token"
PREFLIGHT_MAX_AGE = "86400"


def resolve_cors_origin(request_origin: str, allowed_origins: Sequence[str]) -> str:
    """Echo the request origin if allowed, else fall back to the first allowed origin."""
    if request_origin and request_origin in allowed_origins:
        return request_origin
    return allowed_origins[0] if allowed_origins else "*"


def cors_headers(request: Request, allowed_origins: Sequence[str], preflight: bool = False) -> Dict[str, str]:
    """Build the CORS headers for a proxy response.

    Args:
        request: Inbound request (its Origin header is inspected)
        allowed_origins: Configured origin allow-list
        preflight: Include Access-Control-Max-Age for OPTIONS replies
    """
    request_origin = request.headers.get("origin", "")
    origin = resolve_cors_origin(request_origin, allowed_origins)

    headers = {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
    }
    if origin != "*":
        # Allow-Origin depends on the request's Origin
        headers["Vary"] = "Origin"
    if preflight:
        headers["Access-Control-Max-Age"] = PREFLIGHT_MAX_AGE
    return headers
