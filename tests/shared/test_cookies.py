"""Tests for WebDriver cookie replay helpers."""

from __future__ import annotations

from embedder.shared.cookies import cookies_for_url, to_cookie_header

RAW = [
    {"name": "sid", "value": "abc", "domain": ".example.com", "path": "/"},
    {"name": "files", "value": "1", "domain": "example.com", "path": "/files"},
    {"name": "secure_only", "value": "s", "domain": "example.com", "path": "/", "secure": True},
    {"name": "other", "value": "x", "domain": "other.org", "path": "/"},
    {"value": "nameless"},
]


class TestCookiesForUrl:
    def test_subdomain_and_path_matching(self) -> None:
        cookies = cookies_for_url(RAW, "https://cdn.example.com/files/a.bin")
        assert cookies == {"sid": "abc", "files": "1", "secure_only": "s"}

    def test_path_mismatch_excluded(self) -> None:
        cookies = cookies_for_url(RAW, "https://example.com/other")
        assert "files" not in cookies

    def test_secure_cookie_not_sent_over_http(self) -> None:
        cookies = cookies_for_url(RAW, "http://example.com/")
        assert "secure_only" not in cookies
        assert cookies["sid"] == "abc"

    def test_foreign_domain_excluded(self) -> None:
        assert "other" not in cookies_for_url(RAW, "https://example.com/")


def test_to_cookie_header() -> None:
    assert to_cookie_header({"a": "1", "b": "2"}) == "a=1; b=2"
