"""Inbound request parsing: client identity and target URL validation."""

import urllib.parse
from typing import Optional

from fastapi import Request

from errors import ProxyError

ALLOWED_SCHEMES = ("http", "https")


def get_client_id(request: Request) -> str:
    """Identify the caller for rate limiting and verification.

    Order: first X-Forwarded-For entry, X-Real-IP, socket peer, "unknown".
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def parse_target_url(raw: Optional[str]) -> urllib.parse.SplitResult:
    """Decode and validate the `url` query parameter.

    Raises:
        ProxyError: 400 when the parameter is missing, unparsable,
            not absolute, or uses a scheme other than http/https
    """
    if not raw:
        raise ProxyError.bad_request("URL parameter is required")

    decoded = urllib.parse.unquote(raw).strip()

    try:
        parsed = urllib.parse.urlsplit(decoded)
        scheme = parsed.scheme.lower()
        hostname = parsed.hostname
    except ValueError:
        raise ProxyError.bad_request("Invalid URL")

    if not scheme:
        raise ProxyError.bad_request("Invalid URL")

    if scheme not in ALLOWED_SCHEMES:
        raise ProxyError.bad_request("Invalid protocol")

    if not hostname:
        raise ProxyError.bad_request("Invalid URL")

    return parsed
