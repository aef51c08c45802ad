"""Music Proxy - forwarding endpoint for a browser-based music player."""

import logging
from contextlib import asynccontextmanager
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Optional

import httpx
from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

import config
from allowlist import build_allowlist
from errors import ProxyError, proxy_error_handler
from rate_limiter import FixedWindowRateLimiter
from routers import proxy
from settings import Settings, get_settings
from upstream_headers import make_cookie_hook

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def init_proxy_state(app: FastAPI, s: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
    """Create the shared, startup-only state used by the proxy endpoint.

    The allowlist is built here exactly once and never modified afterwards.
    """
    app.state.allowlist = build_allowlist(s.extra_allowed_hosts)
    app.state.rate_limiter = FixedWindowRateLimiter(
        window_ms=s.rate_limit_window_ms,
        max_requests=s.rate_limit_max_requests,
        max_entries=s.rate_limit_max_entries,
    )
    # Upstream Set-Cookie must never be replayed to other callers
    no_cookies = CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))
    # The configured credential is re-applied on each redirect hop to a cookie host
    request_hooks = [make_cookie_hook(s.netease_vip_cookie)] if s.netease_vip_cookie else []
    app.state.http_client = httpx.AsyncClient(
        # Applies to each connect, read, write and pool wait, not the whole request
        timeout=httpx.Timeout(s.upstream_timeout),
        follow_redirects=True,
        cookies=no_cookies,
        event_hooks={"request": request_hooks},
        transport=transport,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    configure_logging()
    # Startup: Build allowlist, rate limiter and shared HTTP client
    init_proxy_state(app, get_settings())
    logger.info("Music Proxy started")
    yield
    # Shutdown: Close pooled upstream connections
    await app.state.http_client.aclose()


app = FastAPI(
    title="Music Proxy",
    description="Forwarding endpoint for third-party music-service APIs and audio CDNs",
    version="1.0.0",
    lifespan=lifespan,
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"
        # Control referrer information leakage
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app.add_middleware(SecurityHeadersMiddleware)
app.add_exception_handler(ProxyError, proxy_error_handler)

# Mount API routers
app.include_router(proxy.router, prefix="/api")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host=config.HOST, port=config.PORT, reload=config.DEBUG)
