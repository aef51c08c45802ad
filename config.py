"""Configuration for Music Proxy.

All settings are read once from environment variables at import time.
Optional features (bot verification, cookie injection, extra hosts) are
disabled when their variable is unset.
"""

import os

# Server settings
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8080"))

# Debug mode (enables auto-reload in development)
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")

# Root log level
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Comma-separated list of browser origins echoed back in Access-Control-Allow-Origin.
# The first entry is used when the request origin is not listed.
CORS_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "https://music.weny888.com,http://localhost:5173,http://localhost:4173",
)

# Cloudflare Turnstile secret. When unset, bot verification is skipped entirely.
TURNSTILE_SECRET_KEY = os.getenv("TURNSTILE_SECRET_KEY")

# Let requests through when the verification service cannot be reached
TURNSTILE_FAIL_OPEN = os.getenv("TURNSTILE_FAIL_OPEN", "true").lower() in ("true", "1", "yes")

# Seconds to wait for the verification service
TURNSTILE_TIMEOUT = float(os.getenv("TURNSTILE_TIMEOUT", "10"))

# NetEase Cloud Music VIP cookie, attached only to NetEase hosts
NETEASE_VIP_COOKIE = os.getenv("NETEASE_VIP_COOKIE")

# Extra proxy targets, e.g. "api.example.com,.cdn.example.net"
# Tokens starting with "." are suffix matches, all others exact hostnames.
EXTRA_ALLOWED_HOSTS = os.getenv("EXTRA_ALLOWED_HOSTS", "")

# Seconds allowed for each upstream connect, read, write or pool wait
# (per operation, so a slowly dripping body can outlast it in total)
UPSTREAM_TIMEOUT = float(os.getenv("UPSTREAM_TIMEOUT", "30"))

# Stream upstream bodies to the client (disable for platforms without streaming support)
STREAM_RESPONSES = os.getenv("STREAM_RESPONSES", "true").lower() in ("true", "1", "yes")

# Fixed-window rate limiting (per client IP, in-process only)
RATE_LIMIT_WINDOW_MS = int(os.getenv("RATE_LIMIT_WINDOW_MS", "60000"))
RATE_LIMIT_MAX_REQUESTS = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "60"))
RATE_LIMIT_MAX_ENTRIES = int(os.getenv("RATE_LIMIT_MAX_ENTRIES", "10000"))
