"""Minimal async W3C WebDriver client over httpx.

Only the commands the session handle needs are implemented: session
creation, navigation, title/URL, element lookup, attributes, cookies and
script execution. ``raw_get`` replays the browser's cookies and user agent on
a plain HTTP request so binary downloads keep the session identity.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx

from embedder.shared.cookies import cookies_for_url, to_cookie_header
from embedder.shared.exceptions import (
    ConnectError,
    DownloadError,
    ElementNotFoundError,
    NavigationError,
    WebDriverError,
)
from embedder.shared.models import Locator

logger = logging.getLogger(__name__)

# W3C web element reference key
ELEMENT_KEY = "element-6066-11e4-a52e-4f735466cecf"

# Small page on the download's origin, visited only to read that origin's cookies
COOKIE_LANDING_PATH = "/robots.txt"


def _origin(url: str) -> tuple[str, str]:
    parsed = urlparse(url)
    return parsed.scheme.lower(), parsed.netloc.lower()


@dataclass(frozen=True, slots=True)
class WebElement:
    """Reference to one element in the remote DOM."""

    client: WebDriverClient
    element_id: str

    async def attr(self, name: str) -> str | None:
        return await self.client.attribute(self.element_id, name)


class WebDriverClient:
    """Talk to a geckodriver (or any W3C driver) endpoint."""

    def __init__(self, base_url: str, *, timeout: int = 30, http: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._http = http or httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
        self.session_id: str | None = None

    # ── session lifecycle ───────────────────────────────────────

    async def connect(
        self,
        capabilities: dict[str, Any] | None = None,
        *,
        timeout: float = 30,
        initial_delay: float = 0.2,
        max_delay: float = 2.0,
    ) -> str:
        """Create a WebDriver session, retrying until the driver accepts connections.

        Returns:
            The new session id.

        Raises:
            ConnectError: If no session could be created before ``timeout``.
        """
        payload = {"capabilities": {"alwaysMatch": capabilities or {}}}
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        delay = initial_delay
        attempt = 0

        while True:
            attempt += 1
            try:
                value = await self._command("POST", "/session", payload, require_session=False)
                self.session_id = str(value["sessionId"])
                logger.info("webdriver session %s on %s", self.session_id, self.base_url)
                return self.session_id
            except (WebDriverError, KeyError, TypeError) as exc:
                if loop.time() + delay >= deadline:
                    raise ConnectError(f"could not connect to {self.base_url} after {attempt} attempts: {exc}") from exc
                logger.debug("driver at %s not ready (attempt %d): %s", self.base_url, attempt, exc)
            await asyncio.sleep(delay)
            delay = min(delay * 2, max_delay)

    async def close(self) -> None:
        """Delete the WebDriver session and release the HTTP client."""
        try:
            if self.session_id is not None:
                await self._command("DELETE", self._session_path(""))
        finally:
            self.session_id = None
            await self._http.aclose()

    # ── navigation ──────────────────────────────────────────────

    async def goto(self, url: str) -> None:
        try:
            await self._command("POST", self._session_path("/url"), {"url": url})
        except WebDriverError as exc:
            raise NavigationError(f"failed to navigate to {url}: {exc}", code=exc.code) from exc

    async def title(self) -> str:
        return str(await self._command("GET", self._session_path("/title")) or "")

    async def current_url(self) -> str:
        return str(await self._command("GET", self._session_path("/url")) or "")

    async def back(self) -> None:
        await self._command("POST", self._session_path("/back"), {})

    # ── elements ────────────────────────────────────────────────

    async def find_all(self, locator: Locator) -> list[WebElement]:
        value = await self._command("POST", self._session_path("/elements"), locator.to_payload())
        return [WebElement(self, ref[ELEMENT_KEY]) for ref in value or [] if ELEMENT_KEY in ref]

    async def find(self, locator: Locator) -> WebElement:
        try:
            value = await self._command("POST", self._session_path("/element"), locator.to_payload())
        except WebDriverError as exc:
            if exc.code == "no such element":
                raise ElementNotFoundError(f"no element matches {locator.value!r}", code=exc.code) from exc
            raise
        return WebElement(self, value[ELEMENT_KEY])

    async def attribute(self, element_id: str, name: str) -> str | None:
        value = await self._command("GET", self._session_path(f"/element/{element_id}/attribute/{name}"))
        return None if value is None else str(value)

    # ── browser state ───────────────────────────────────────────

    async def get_cookies(self) -> list[dict[str, Any]]:
        return list(await self._command("GET", self._session_path("/cookie")) or [])

    async def execute(self, script: str, *args: Any) -> Any:
        return await self._command("POST", self._session_path("/execute/sync"), {"script": script, "args": list(args)})

    async def user_agent(self) -> str:
        return str(await self.execute("return navigator.userAgent;") or "")

    async def cookies_for(self, url: str) -> dict[str, str]:
        """Return the browser cookies that apply to ``url``.

        The cookie endpoint only reports cookies visible to the current
        document. For a URL on another origin the browser briefly visits
        :data:`COOKIE_LANDING_PATH` on that origin and then goes back.
        """
        if _origin(await self.current_url()) == _origin(url):
            return cookies_for_url(await self.get_cookies(), url)

        scheme, netloc = _origin(url)
        await self.goto(f"{scheme}://{netloc}{COOKIE_LANDING_PATH}")
        try:
            raw = await self.get_cookies()
        finally:
            await self.back()
        logger.debug("read %d cookies from %s://%s", len(raw), scheme, netloc)
        return cookies_for_url(raw, url)

    async def raw_get(self, url: str, *, timeout: float = 300) -> bytes:
        """GET ``url`` outside the browser, carrying the browser's cookies and user agent.

        Raises:
            DownloadError: On transport failure or a non-2xx response.
        """
        headers = {"User-Agent": await self.user_agent()}
        cookies = await self.cookies_for(url)
        if cookies:
            headers["Cookie"] = to_cookie_header(cookies)

        body = bytearray()
        try:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
                async with client.stream("GET", url, headers=headers) as resp:
                    if resp.status_code >= 400:
                        raise DownloadError(f"GET {url} returned {resp.status_code}")
                    async for chunk in resp.aiter_bytes():
                        body.extend(chunk)
        except httpx.HTTPError as exc:
            raise DownloadError(f"GET {url} failed: {exc!r}") from exc

        logger.info("downloaded %d bytes from %s", len(body), url)
        return bytes(body)

    # ── transport ───────────────────────────────────────────────

    def _session_path(self, suffix: str) -> str:
        if self.session_id is None:
            raise WebDriverError("no webdriver session, call connect() first")
        return f"/session/{self.session_id}{suffix}"

    async def _command(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        *,
        require_session: bool = True,
    ) -> Any:
        """Send one WebDriver command and unwrap its ``value``."""
        if require_session and self.session_id is None:
            raise WebDriverError("no webdriver session, call connect() first")
        try:
            resp = await self._http.request(method, path, json=payload if method != "GET" else None)
            data = resp.json()
        except httpx.HTTPError as exc:
            raise WebDriverError(f"{method} {path} failed: {exc!r}") from exc
        except ValueError as exc:
            raise WebDriverError(f"{method} {path} returned invalid JSON (status={resp.status_code})") from exc

        value = data.get("value") if isinstance(data, dict) else None
        if resp.status_code >= 400 or (isinstance(value, dict) and "error" in value):
            error = value if isinstance(value, dict) else {}
            code = str(error.get("error", resp.status_code))
            message = str(error.get("message", "")).splitlines()[0] if error.get("message") else ""
            raise WebDriverError(f"{code}: {message}" if message else code, code=code)
        return value
