"""Cloudflare Turnstile token verification."""

import enum
import logging
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)

SITEVERIFY_URL = "https://challenges.cloudflare.com/turnstile/v0/siteverify"

TOKEN_HEADER = "X-Turnstile-Token"


class VerificationOutcome(enum.Enum):
    """Result of asking the verification service about a token."""

    VERIFIED = "verified"
    REJECTED = "rejected"
    UNREACHABLE = "unreachable"


async def verify_token(
    client: httpx.AsyncClient,
    secret: str,
    token: str,
    remote_ip: Optional[str] = None,
    timeout: float = 10.0,
) -> VerificationOutcome:
    """Verify a Turnstile token.

    Transport errors, timeouts, non-2xx replies and unparsable bodies are
    reported as UNREACHABLE; the caller decides whether that is fatal.

    Args:
        client: Shared HTTP client
        secret: Turnstile secret key
        token: Token supplied by the browser
        remote_ip: Client IP passed along as a hint
        timeout: Seconds to wait for the service

    Returns:
        VerificationOutcome
    """
    payload = {"secret": secret, "response": token}
    if remote_ip and remote_ip != "unknown":
        payload["remoteip"] = remote_ip

    try:
        response = await client.post(SITEVERIFY_URL, json=payload, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except httpx.TimeoutException as e:
        logger.error(f"[Turnstile] Verify timeout: {e}")
        return VerificationOutcome.UNREACHABLE
    except httpx.HTTPStatusError as e:
        logger.error(f"[Turnstile] Verify error: HTTP {e.response.status_code}")
        return VerificationOutcome.UNREACHABLE
    except httpx.RequestError as e:
        logger.error(f"[Turnstile] Verify error: {e}")
        return VerificationOutcome.UNREACHABLE
    except ValueError as e:
        logger.error(f"[Turnstile] Invalid verify response: {e}")
        return VerificationOutcome.UNREACHABLE

    if not isinstance(data, dict):
        logger.error(f"[Turnstile] Unexpected verify response type: {type(data).__name__}")
        return VerificationOutcome.UNREACHABLE

    if data.get("success") is True:
        return VerificationOutcome.VERIFIED

    error_codes: List[str] = data.get("error-codes") or []
    logger.warning(f"[Turnstile] Token rejected for {remote_ip}: {error_codes}")
    return VerificationOutcome.REJECTED
