"""Outbound header construction for upstream music-service requests.

Upstream hosts check Referer/Origin and sometimes cookies, so each request
is dressed up as a browser request coming from the provider's own site.
"""

from typing import Awaitable, Callable, Dict, Mapping, Optional, Tuple

import httpx

# (hostname substring, referer) - first match wins
REFERER_RULES: Tuple[Tuple[str, str], ...] = (
    ("gdstudio.xyz", "https://music-api.gdstudio.xyz/"),
    ("qq.com", "https://y.qq.com/"),
    ("kugou.com", "https://www.kugou.com/"),
    ("migu.cn", "https://music.migu.cn/"),
    ("kuwo.cn", "https://www.kuwo.cn/"),
    ("api.i-meto.com", "https://api.i-meto.com/"),
    ("joox.com", "https://www.joox.com/"),
    ("ximalaya.com", "https://www.ximalaya.com/"),
    ("xmcdn.com", "https://www.ximalaya.com/"),
)

DEFAULT_REFERER = "https://music.163.com/"

# Primary aggregator; requests to it mimic a browser cross-origin fetch
AGGREGATOR_DOMAIN = "gdstudio.xyz"

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

ACCEPT = "application/json, text/plain, */*"

# Hosts that receive the NetEase cookie (exact or subdomain match)
NETEASE_COOKIE_HOSTS = (
    "music.163.com",
    "netease-cloud-music-api-psi-three.vercel.app",
    "netease-cloud-music-api-five-roan.vercel.app",
    "w7z.indevs.in",
)

# Client request headers passed through so audio seeking works
PASSTHROUGH_REQUEST_HEADERS = ("range", "if-range")


def get_referer_for_host(hostname: str) -> str:
    """Return the referer to present to the given upstream host."""
    for fragment, referer in REFERER_RULES:
        if fragment in hostname:
            return referer
    return DEFAULT_REFERER


def is_cookie_host(hostname: str) -> bool:
    """Check if hostname is, or is a subdomain of, a cookie-policy host."""
    return any(hostname == host or hostname.endswith("." + host) for host in NETEASE_COOKIE_HOSTS)


def build_upstream_headers(
    hostname: str,
    cookie: Optional[str] = None,
    client_headers: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """Build the headers for an outbound GET to hostname.

    Args:
        hostname: Lower-cased target hostname
        cookie: Provider credential; attached only to cookie-policy hosts
        client_headers: Inbound request headers (only Range/If-Range are used)

    Returns:
        Header dict for the upstream request
    """
    referer = get_referer_for_host(hostname)
    headers = {
        "Referer": referer,
        "Origin": referer.rstrip("/"),
        "User-Agent": USER_AGENT,
        "Accept": ACCEPT,
    }

    if AGGREGATOR_DOMAIN in hostname:
        headers["Accept-Language"] = "zh-CN,zh;q=0.9,en;q=0.8"
        headers["Cache-Control"] = "no-cache"
        headers["Sec-Fetch-Dest"] = "empty"
        headers["Sec-Fetch-Mode"] = "cors"
        headers["Sec-Fetch-Site"] = "same-site"

    if cookie and is_cookie_host(hostname):
        headers["Cookie"] = cookie

    if client_headers:
        for name in PASSTHROUGH_REQUEST_HEADERS:
            value = client_headers.get(name)
            if value:
                headers[name.title()] = value

    return headers


def make_cookie_hook(cookie: str) -> Callable[[httpx.Request], Awaitable[None]]:
    """Build an httpx request hook that attaches the cookie on every hop.

    httpx strips explicit Cookie headers when following a redirect, so the
    credential is re-applied per request. Redirects that leave the cookie
    hosts get no cookie.
    """

    async def attach_cookie(request: httpx.Request) -> None:
        if is_cookie_host(request.url.host):
            request.headers["Cookie"] = cookie

    return attach_cookie
