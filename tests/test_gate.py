"""Tests for routers/proxy/_gate.py - client identity and target validation."""

import os
import sys

import pytest
from starlette.requests import Request

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from errors import ProxyError
from routers.proxy._gate import get_client_id, parse_target_url


def make_request(headers=None, client=("10.0.0.9", 51234)) -> Request:
    """Build a bare Starlette request from an ASGI scope."""
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/proxy",
        "query_string": b"",
        "headers": raw_headers,
        "client": client,
    }
    return Request(scope)


# =============================================================================
# Tests for get_client_id
# =============================================================================


class TestGetClientId:
    """Tests for get_client_id."""

    def test_forwarded_for_first_entry(self):
        """The first X-Forwarded-For entry wins."""
        request = make_request({"X-Forwarded-For": " 203.0.113.5 , 10.0.0.1, 10.0.0.2"})
        assert get_client_id(request) == "203.0.113.5"

    def test_real_ip_fallback(self):
        """X-Real-IP is used when X-Forwarded-For is absent."""
        request = make_request({"X-Real-IP": "198.51.100.7"})
        assert get_client_id(request) == "198.51.100.7"

    def test_forwarded_for_beats_real_ip(self):
        request = make_request({"X-Forwarded-For": "203.0.113.5", "X-Real-IP": "198.51.100.7"})
        assert get_client_id(request) == "203.0.113.5"

    def test_socket_address_fallback(self):
        """The peer address is used when no proxy headers are present."""
        assert get_client_id(make_request()) == "10.0.0.9"

    def test_unknown_without_any_source(self):
        """'unknown' is returned when nothing identifies the client."""
        assert get_client_id(make_request(client=None)) == "unknown"

    def test_empty_forwarded_for_ignored(self):
        """An empty X-Forwarded-For falls through to the next source."""
        request = make_request({"X-Forwarded-For": " , ", "X-Real-IP": "198.51.100.7"})
        assert get_client_id(request) == "198.51.100.7"


# =============================================================================
# Tests for parse_target_url
# =============================================================================


class TestParseTargetUrl:
    """Tests for parse_target_url."""

    def test_valid_https_url(self):
        parsed = parse_target_url("https://music.163.com/api/song/enhance/player/url?id=1")
        assert parsed.scheme == "https"
        assert parsed.hostname == "music.163.com"
        assert parsed.query == "id=1"

    def test_percent_encoded_url_is_decoded(self):
        """The parameter is percent-decoded before parsing."""
        parsed = parse_target_url("https%3A%2F%2Fmusic-api.gdstudio.xyz%2Fapi.php%3Ftypes%3Dsearch")
        assert parsed.hostname == "music-api.gdstudio.xyz"
        assert parsed.path == "/api.php"
        assert parsed.query == "types=search"

    def test_hostname_lowercased(self):
        assert parse_target_url("HTTPS://Music.163.COM/").hostname == "music.163.com"

    @pytest.mark.parametrize("raw", [None, ""])
    def test_missing_parameter(self, raw):
        """A missing url parameter is a 400."""
        with pytest.raises(ProxyError) as exc_info:
            parse_target_url(raw)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "URL parameter is required"

    @pytest.mark.parametrize("raw", ["not a url", "/relative/path", "http://", "https:///path", "http://[::1"])
    def test_invalid_url(self, raw):
        """Relative, host-less or unparsable URLs are a 400."""
        with pytest.raises(ProxyError) as exc_info:
            parse_target_url(raw)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid URL"

    @pytest.mark.parametrize(
        "raw",
        [
            "ftp://music.163.com/file",
            "file:///etc/passwd",
            "javascript:alert(1)",
            "data:text/html,hello",
            "ws://music.163.com/socket",
        ],
    )
    def test_invalid_protocol(self, raw):
        """Schemes other than http/https are a 400."""
        with pytest.raises(ProxyError) as exc_info:
            parse_target_url(raw)
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "Invalid protocol"
