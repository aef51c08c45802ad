"""Upstream host allowlist.

The allowlist is built once at startup from the built-in music-service hosts
plus the optional EXTRA_ALLOWED_HOSTS value, and is read-only afterwards.
"""

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple

logger = logging.getLogger(__name__)

# Hostnames matched exactly
DEFAULT_EXACT_HOSTS = frozenset({
    # Music API sources
    "music-api.gdstudio.xyz",
    "api.injahow.cn",
    "api.i-meto.com",
    "w7z.indevs.in",
    "netease-cloud-music-api-psi-three.vercel.app",
    "netease-cloud-music-api-five-roan.vercel.app",
    # QQ Music
    "y.qq.com",
    # NetEase Cloud Music
    "music.163.com",
    "interface.music.163.com",
    # NetEase audio CDN
    "music.126.net",
    "m7.music.126.net",
    "m8.music.126.net",
    "m701.music.126.net",
    "m801.music.126.net",
    "p1.music.126.net",
    "p2.music.126.net",
    # QQ Music CDN
    "dl.stream.qqmusic.qq.com",
    "ws.stream.qqmusic.qq.com",
    "isure.stream.qqmusic.qq.com",
    # Kugou CDN
    "trackercdn.kugou.com",
    "webfs.tx.kugou.com",
    # Migu CDN
    "freetyst.nf.migu.cn",
    # Kuwo CDN
    "sycdn.kuwo.cn",
    "other.web.nf01.sycdn.kuwo.cn",
    "other.web.ra01.sycdn.kuwo.cn",
    # JOOX
    "api.joox.com",
    # Ximalaya CDN
    "fdfs.xmcdn.com",
    "aod.cos.tx.xmcdn.com",
})

# Subdomain suffixes (known CDN patterns only)
DEFAULT_HOST_SUFFIXES = (
    ".music.126.net",
    ".stream.qqmusic.qq.com",
    ".kugou.com",
    ".sycdn.kuwo.cn",
    ".xmcdn.com",
    ".nf.migu.cn",
)


@dataclass(frozen=True)
class AllowedHosts:
    """Immutable set of permitted proxy targets."""

    exact: FrozenSet[str]
    suffixes: Tuple[str, ...]

    def is_allowed(self, hostname: str) -> bool:
        """Check if hostname is an exact match or ends with an allowed suffix."""
        if not hostname:
            return False
        hostname = hostname.lower()
        if hostname in self.exact:
            return True
        return any(hostname.endswith(suffix) for suffix in self.suffixes)


def parse_extra_hosts(raw: str) -> Tuple[FrozenSet[str], Tuple[str, ...]]:
    """Split a comma-separated host list into (exact, suffixes).

    Tokens starting with "." are suffixes; everything else is an exact hostname.
    Blank tokens are ignored.
    """
    exact = set()
    suffixes = []
    for token in (raw or "").split(","):
        token = token.strip().lower()
        if not token:
            continue
        if token.startswith("."):
            if token not in suffixes:
                suffixes.append(token)
        else:
            exact.add(token)
    return frozenset(exact), tuple(suffixes)


def build_allowlist(
    extra_hosts: str = "",
    exact: Iterable[str] = DEFAULT_EXACT_HOSTS,
    suffixes: Iterable[str] = DEFAULT_HOST_SUFFIXES,
) -> AllowedHosts:
    """Build the allowlist once, extending the defaults with configured hosts."""
    extra_exact, extra_suffixes = parse_extra_hosts(extra_hosts)
    base_suffixes = tuple(suffixes)
    all_suffixes = base_suffixes + tuple(s for s in extra_suffixes if s not in base_suffixes)

    if extra_exact or extra_suffixes:
        logger.info(
            f"[Allowlist] Extended with {len(extra_exact)} host(s) and "
            f"{len(extra_suffixes)} suffix(es) from configuration"
        )

    return AllowedHosts(exact=frozenset(exact) | extra_exact, suffixes=all_suffixes)
