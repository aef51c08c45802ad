"""Proxy router definition and upstream response relay."""

import logging
from typing import AsyncIterator, Dict, Mapping

import httpx
from fastapi import APIRouter
from fastapi.responses import Response, StreamingResponse
from starlette.background import BackgroundTask

from errors import ProxyError

router = APIRouter(tags=["proxy"])

logger = logging.getLogger(__name__)

# Upstream response headers relayed to the client when present
FORWARDED_RESPONSE_HEADERS = ("content-length", "content-range", "cache-control", "etag", "last-modified")

# Content types that support byte-range seeking in players
RANGE_CONTENT_MARKERS = ("audio", "octet-stream")


def build_relay_headers(upstream_headers: Mapping[str, str], cors: Mapping[str, str]) -> Dict[str, str]:
    """Translate upstream response headers into client-facing headers.

    The relayed body is the decoded stream, so Content-Length is only kept
    when the upstream body was not content-encoded.
    """
    headers = dict(cors)

    content_type = upstream_headers.get("content-type")
    if content_type:
        headers["content-type"] = content_type
        if any(marker in content_type for marker in RANGE_CONTENT_MARKERS):
            headers["accept-ranges"] = "bytes"

    encoding = upstream_headers.get("content-encoding", "identity").strip().lower()
    is_encoded = encoding not in ("", "identity")

    for name in FORWARDED_RESPONSE_HEADERS:
        if name == "content-length" and is_encoded:
            continue
        value = upstream_headers.get(name)
        if value:
            headers[name] = value

    return headers


async def open_upstream(client: httpx.AsyncClient, url: str, headers: Mapping[str, str]) -> httpx.Response:
    """Send the upstream GET and return the response with its body unread.

    Raises:
        ProxyError: 504 on timeout, 500 on any other transport failure
    """
    try:
        request = client.build_request("GET", url, headers=headers)
        return await client.send(request, stream=True)
    except httpx.TimeoutException as e:
        logger.error(f"[Proxy] Request timeout: {url[:100]} - {e!r}")
        raise ProxyError.upstream_timeout()
    except httpx.RequestError as e:
        logger.error(f"[Proxy] Request failed: {url[:100]} - {e!r}")
        raise ProxyError.upstream_failure()
    except httpx.InvalidURL as e:
        logger.warning(f"[Proxy] Invalid upstream URL: {url[:100]} - {e}")
        raise ProxyError.bad_request("Invalid URL")


async def iter_upstream(upstream: httpx.Response) -> AsyncIterator[bytes]:
    """Yield upstream body chunks, closing the upstream response when done."""
    try:
        async for chunk in upstream.aiter_bytes():
            yield chunk
    except httpx.HTTPError as e:
        # Status and headers are already sent; the client sees a truncated body
        logger.error(f"[Proxy] Upstream stream interrupted: {upstream.request.url.host} - {e!r}")
        raise
    finally:
        await upstream.aclose()


async def relay_response(upstream: httpx.Response, cors: Mapping[str, str], stream: bool = True) -> Response:
    """Turn an open upstream response into the client response.

    Args:
        upstream: Response returned by open_upstream (body not yet read)
        cors: CORS headers to set on the reply
        stream: Stream the body; when False the body is read fully first
    """
    headers = build_relay_headers(upstream.headers, cors)

    if not stream:
        try:
            body = await upstream.aread()
        except httpx.TimeoutException as e:
            logger.error(f"[Proxy] Body read timeout: {upstream.request.url.host} - {e!r}")
            raise ProxyError.upstream_timeout()
        except httpx.HTTPError as e:
            logger.error(f"[Proxy] Body read failed: {upstream.request.url.host} - {e!r}")
            raise ProxyError.upstream_failure()
        finally:
            await upstream.aclose()
        return Response(content=body, status_code=upstream.status_code, headers=headers)

    return StreamingResponse(
        iter_upstream(upstream),
        status_code=upstream.status_code,
        headers=headers,
        background=BackgroundTask(upstream.aclose),
    )
