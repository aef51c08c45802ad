"""The /api/proxy endpoint: gate, admission checks, upstream call, relay."""

import logging
from typing import Optional

import httpx
from fastapi import Depends, Request
from fastapi.responses import Response

from allowlist import AllowedHosts
from errors import ProxyError
from rate_limiter import FixedWindowRateLimiter
from routers.proxy._admission import check_allowlist, check_bot_token, check_rate_limit
from routers.proxy._cors import cors_headers
from routers.proxy._deps import get_allowlist, get_http_client, get_rate_limiter
from routers.proxy._gate import get_client_id, parse_target_url
from routers.proxy._streaming import open_upstream, relay_response, router
from settings import get_settings
from upstream_headers import build_upstream_headers

logger = logging.getLogger(__name__)


@router.options("/proxy")
async def proxy_preflight(request: Request):
    """Answer CORS preflight without looking at the request any further."""
    s = get_settings()
    return Response(status_code=204, headers=cors_headers(request, s.cors_origins, preflight=True))


@router.api_route("/proxy", methods=["GET", "POST"])
async def proxy(
    request: Request,
    url: Optional[str] = None,
    client: httpx.AsyncClient = Depends(get_http_client),
    allowlist: AllowedHosts = Depends(get_allowlist),
    limiter: FixedWindowRateLimiter = Depends(get_rate_limiter),
):
    """Forward a GET to an allowlisted music-service host and relay the reply.

    The upstream request is always a GET; a POST body is never read.

    Args:
        url: Percent-encoded absolute http(s) URL of the upstream resource
    """
    s = get_settings()
    cors = cors_headers(request, s.cors_origins)

    try:
        target = parse_target_url(url)
        client_id = get_client_id(request)

        check_rate_limit(limiter, client_id)
        await check_bot_token(request, client, s, client_id)

        hostname = target.hostname
        check_allowlist(allowlist, hostname, client_id)

        headers = build_upstream_headers(hostname, cookie=s.netease_vip_cookie, client_headers=request.headers)
        target_url = target.geturl()

        logger.info(f"[Proxy] {client_id} -> {hostname}{target.path[:80]}")
        upstream = await open_upstream(client, target_url, headers)

        if upstream.status_code >= 400:
            logger.warning(f"[Proxy] Upstream error: {upstream.status_code} for {hostname}")

        return await relay_response(upstream, cors, stream=s.stream_responses)
    except ProxyError as e:
        # Browsers can only read the error body with CORS headers present
        e.headers = {**cors, **e.headers}
        raise
