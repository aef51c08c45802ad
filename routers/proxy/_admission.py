"""Admission checks run before any upstream request is made."""

import logging

import httpx
from fastapi import Request

from allowlist import AllowedHosts
from errors import ProxyError
from rate_limiter import FixedWindowRateLimiter
from settings import Settings
from turnstile import TOKEN_HEADER, VerificationOutcome, verify_token

logger = logging.getLogger(__name__)


def check_rate_limit(limiter: FixedWindowRateLimiter, client_id: str) -> None:
    """Count the request and reject it with 429 when the window is exhausted."""
    result = limiter.check(client_id)
    if not result.allowed:
        logger.warning(f"[RateLimit] Rejected {client_id} until {result.reset_seconds}")
        raise ProxyError.rate_limited(result.reset_seconds)


async def check_bot_token(
    request: Request, client: httpx.AsyncClient, s: Settings, client_id: str
) -> VerificationOutcome:
    """Verify the Turnstile token when a secret is configured.

    Explicit rejection is always fatal. An unreachable verifier is fatal only
    when turnstile_fail_open is disabled.

    Returns:
        The verification outcome (VERIFIED when verification is disabled)

    Raises:
        ProxyError: 403 on a missing or rejected token
    """
    if not s.turnstile_enabled:
        return VerificationOutcome.VERIFIED

    token = request.headers.get(TOKEN_HEADER)
    if not token:
        logger.warning(f"[Turnstile] Missing token from {client_id}")
        raise ProxyError.forbidden("Turnstile token required")

    outcome = await verify_token(
        client, s.turnstile_secret_key, token, remote_ip=client_id, timeout=s.turnstile_timeout
    )

    if outcome is VerificationOutcome.REJECTED:
        raise ProxyError.forbidden("Turnstile verification failed")

    if outcome is VerificationOutcome.UNREACHABLE:
        if not s.turnstile_fail_open:
            logger.warning(f"[Turnstile] Verifier unreachable, rejecting {client_id} (fail-closed)")
            raise ProxyError.forbidden("Turnstile verification unavailable")
        logger.warning(f"[Turnstile] Verifier unreachable, allowing {client_id} (fail-open)")

    return outcome


def check_allowlist(allowlist: AllowedHosts, hostname: str, client_id: str) -> None:
    """Reject targets outside the allowlist with 403."""
    if not allowlist.is_allowed(hostname):
        logger.warning(f"[Proxy] Blocked request from {client_id} to unauthorized host: {hostname}")
        raise ProxyError.forbidden("URL not allowed")
