"""Validated runtime settings built from environment configuration."""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

import config

logger = logging.getLogger(__name__)


class Settings(BaseModel):
    """Proxy settings, validated once at startup."""

    # CORS
    cors_origins: List[str] = Field(default_factory=list)

    # Bot verification
    turnstile_secret_key: Optional[str] = None
    turnstile_fail_open: bool = True
    turnstile_timeout: float = Field(default=10.0, gt=0, le=60)

    # Upstream
    netease_vip_cookie: Optional[str] = None
    extra_allowed_hosts: str = ""
    upstream_timeout: float = Field(default=30.0, gt=0, le=600)
    stream_responses: bool = True

    # Rate limiting
    rate_limit_window_ms: int = Field(default=60000, ge=1000, le=3600000)
    rate_limit_max_requests: int = Field(default=60, ge=1, le=100000)
    rate_limit_max_entries: int = Field(default=10000, ge=100, le=10000000)

    @property
    def turnstile_enabled(self) -> bool:
        return bool(self.turnstile_secret_key)


# In-memory cached settings
_cached_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get current settings (cached in memory)."""
    global _cached_settings
    if _cached_settings is None:
        _cached_settings = load_settings()
    return _cached_settings


def load_settings() -> Settings:
    """Build settings from the environment-backed config module."""
    origins = [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]
    s = Settings(
        cors_origins=origins,
        turnstile_secret_key=config.TURNSTILE_SECRET_KEY or None,
        turnstile_fail_open=config.TURNSTILE_FAIL_OPEN,
        turnstile_timeout=config.TURNSTILE_TIMEOUT,
        netease_vip_cookie=config.NETEASE_VIP_COOKIE or None,
        extra_allowed_hosts=config.EXTRA_ALLOWED_HOSTS,
        upstream_timeout=config.UPSTREAM_TIMEOUT,
        stream_responses=config.STREAM_RESPONSES,
        rate_limit_window_ms=config.RATE_LIMIT_WINDOW_MS,
        rate_limit_max_requests=config.RATE_LIMIT_MAX_REQUESTS,
        rate_limit_max_entries=config.RATE_LIMIT_MAX_ENTRIES,
    )
    logger.info(
        f"Settings loaded: origins={s.cors_origins}, turnstile={'on' if s.turnstile_enabled else 'off'}, "
        f"fail_open={s.turnstile_fail_open}, cookie={'set' if s.netease_vip_cookie else 'unset'}"
    )
    return s


def invalidate_cache() -> None:
    """Force reload settings from the environment on next access."""
    global _cached_settings
    _cached_settings = None
