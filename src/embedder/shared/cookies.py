"""Cookie helpers for replaying a browser session's cookies over plain HTTP.

WebDriver reports cookies as JSON objects (name, value, domain, path, secure).
This module intentionally avoids logging cookie values.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse


def _domain_matches(host: str, domain: str) -> bool:
    domain = domain.lstrip(".").lower()
    if not domain:
        return True
    host = host.lower()
    return host == domain or host.endswith(f".{domain}")


def cookies_for_url(raw_cookies: list[dict[str, Any]], url: str) -> dict[str, str]:
    """Select the WebDriver cookies a browser would send to ``url``."""
    parsed = urlparse(url)
    host = parsed.hostname or ""
    path = parsed.path or "/"
    cookies: dict[str, str] = {}

    for cookie in raw_cookies:
        name = cookie.get("name")
        if not isinstance(name, str) or not name:
            continue
        if not _domain_matches(host, str(cookie.get("domain") or "")):
            continue
        if not path.startswith(str(cookie.get("path") or "/")):
            continue
        if cookie.get("secure") and parsed.scheme != "https":
            continue
        cookies[name] = str(cookie.get("value", ""))

    return cookies


def to_cookie_header(cookies: dict[str, str]) -> str:
    """Render a dict as a raw ``Cookie`` header value."""
    return "; ".join(f"{key}={value}" for key, value in cookies.items())
