"""Shared dependencies for proxy endpoints.

State is created once in the application lifespan (see server.init_proxy_state)
and only read here.
"""

import httpx
from fastapi import Request

from allowlist import AllowedHosts
from rate_limiter import FixedWindowRateLimiter


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_allowlist(request: Request) -> AllowedHosts:
    return request.app.state.allowlist


def get_rate_limiter(request: Request) -> FixedWindowRateLimiter:
    return request.app.state.rate_limiter
