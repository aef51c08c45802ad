"""Shared test fixtures for Music Proxy tests."""

import os

# Add project root to path
import sys
from contextlib import asynccontextmanager
from typing import Callable, List

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import settings as settings_module  # noqa: E402
from errors import ProxyError, proxy_error_handler  # noqa: E402
from settings import Settings  # noqa: E402

ALLOWED_ORIGIN = "https://music.weny888.com"
VERIFY_HOST = "challenges.cloudflare.com"


# =============================================================================
# Mock Upstream
# =============================================================================


class MockUpstream:
    """httpx MockTransport handler recording upstream and verification calls.

    Music-service requests land in `requests`; Turnstile siteverify calls
    land in `verify_requests`. Replace `responder` / `verify_responder` to
    change what is returned.
    """

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.verify_requests: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"ok": True}
        )
        self.verify_responder: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"success": True}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.host == VERIFY_HOST:
            self.verify_requests.append(request)
            return self.verify_responder(request)
        self.requests.append(request)
        return self.responder(request)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream():
    """Recording upstream used as the transport of the shared HTTP client."""
    return MockUpstream()


# =============================================================================
# Settings and App Fixtures
# =============================================================================


def make_settings(**overrides) -> Settings:
    """Settings with test defaults (no Turnstile, no cookie)."""
    values = {
        "cors_origins": [ALLOWED_ORIGIN, "http://localhost:5173"],
        "turnstile_secret_key": None,
        "netease_vip_cookie": None,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings(monkeypatch):
    """Install default test settings into the settings cache."""
    s = make_settings()
    monkeypatch.setattr(settings_module, "_cached_settings", s)
    return s


@pytest.fixture
def make_app(monkeypatch, upstream):
    """Factory building a proxy app wired to the mock upstream.

    Keyword arguments override Settings fields.
    """

    def _make(**overrides) -> FastAPI:
        from routers import proxy
        from server import init_proxy_state

        s = make_settings(**overrides)
        monkeypatch.setattr(settings_module, "_cached_settings", s)

        # Simple lifespan using the mock transport
        @asynccontextmanager
        async def test_lifespan(app: FastAPI):
            init_proxy_state(app, s, transport=httpx.MockTransport(upstream))
            yield
            await app.state.http_client.aclose()

        app = FastAPI(lifespan=test_lifespan)
        app.add_exception_handler(ProxyError, proxy_error_handler)
        app.include_router(proxy.router, prefix="/api")
        return app

    return _make


@pytest.fixture
def proxy_client(make_app):
    """TestClient for a proxy app with default test settings."""
    with TestClient(make_app()) as client:
        yield client


def proxy_get(client: TestClient, target: str, **kwargs) -> httpx.Response:
    """GET /api/proxy with `target` as the url parameter."""
    return client.get("/api/proxy", params={"url": target}, **kwargs)
