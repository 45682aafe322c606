"""Session handle returned by the orchestrator for one browser container."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from types import TracebackType
from urllib.parse import urljoin

from embedder.browser.webdriver import WebDriverClient, WebElement
from embedder.container.interfaces import ContainerRuntime
from embedder.shared.enums import SessionState
from embedder.shared.exceptions import (
    AttributeMissingError,
    LaunchError,
    SessionClosedError,
    TeardownError,
    WebDriverError,
)
from embedder.shared.models import Locator

logger = logging.getLogger(__name__)


class BrowserSession:
    """One disposable browser container plus its WebDriver connection.

    Use as ``async with`` or call :meth:`close` explicitly; teardown runs
    exactly once and never raises.
    """

    def __init__(
        self,
        *,
        name: str,
        container_name: str,
        port: int,
        client: WebDriverClient,
        runtime: ContainerRuntime,
        download_timeout: float = 300,
        on_closed: Callable[[BrowserSession], None] | None = None,
    ) -> None:
        self._name = name
        self._container_name = container_name
        self._port = port
        self.client = client
        self._runtime = runtime
        self._download_timeout = download_timeout
        self._on_closed = on_closed
        self._state = SessionState.CONNECTED
        self._close_task: asyncio.Task[None] | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def port(self) -> int:
        return self._port

    @property
    def container_name(self) -> str:
        return self._container_name

    @property
    def state(self) -> SessionState:
        return self._state

    def __repr__(self) -> str:
        return f"BrowserSession(name={self._name!r}, port={self._port}, state={self._state.value})"

    # ── navigation / queries ────────────────────────────────────

    async def navigate(self, url: str) -> None:
        """Load ``url`` in the session's browser.

        Raises:
            NavigationError: If the page fails to load.
        """
        self._ensure_open()
        logger.debug("session %s navigating to %s", self._name, url)
        await self.client.goto(url)

    async def title(self) -> str:
        self._ensure_open()
        try:
            return await self.client.title()
        except WebDriverError as exc:
            logger.debug("session %s: title unavailable: %s", self._name, exc)
            return ""

    async def current_url(self) -> str:
        self._ensure_open()
        return await self.client.current_url()

    async def find_all(self, locator: Locator) -> list[WebElement]:
        """Return every matching element, or an empty list."""
        self._ensure_open()
        try:
            return await self.client.find_all(locator)
        except WebDriverError as exc:
            logger.debug("session %s: lookup %r failed: %s", self._name, locator.value, exc)
            return []

    async def query_attribute(self, selector: str, attribute: str) -> str | None:
        """Read ``attribute`` of the first element matching CSS ``selector``."""
        elements = await self.find_all(Locator.css(selector))
        if not elements:
            return None
        try:
            return await elements[0].attr(attribute)
        except WebDriverError as exc:
            logger.debug("session %s: %s@%s unreadable: %s", self._name, selector, attribute, exc)
            return None

    async def query_attributes(self, selector: str, attribute: str) -> list[str]:
        """Read ``attribute`` of every element matching CSS ``selector``, skipping absent values."""
        elements = await self.find_all(Locator.css(selector))
        if not elements:
            return []
        values = await asyncio.gather(*(e.attr(attribute) for e in elements), return_exceptions=True)
        result: list[str] = []
        for value in values:
            if isinstance(value, WebDriverError):
                logger.debug("session %s: %s@%s unreadable: %s", self._name, selector, attribute, value)
                continue
            if isinstance(value, BaseException):
                raise value
            if value is not None:
                result.append(value)
        return result

    async def download_via(
        self,
        url: str,
        locator: Locator,
        link_attribute: str = "href",
        override_link: str | None = None,
    ) -> bytes:
        """Open ``url``, locate the download link and fetch it with this session's identity.

        Args:
            url: Page that carries the download link.
            locator: How to find the link element.
            link_attribute: Attribute holding the link (``href``, ``src``, ...).
            override_link: Fetch this URL instead of the element's attribute.

        Returns:
            The full response body.

        Raises:
            NavigationError: If ``url`` fails to load.
            ElementNotFoundError: If nothing matches ``locator``.
            AttributeMissingError: If the element has no ``link_attribute``.
            DownloadError: If the transfer fails.
        """
        await self.navigate(url)
        element = await self.client.find(locator)

        if override_link is not None:
            link = override_link
        else:
            link = await element.attr(link_attribute)
            if not link:
                raise AttributeMissingError(f"element {locator.value!r} has no {link_attribute!r}")

        page_url = await self.client.current_url()
        target = urljoin(page_url or url, link)
        logger.info("session %s downloading %s", self._name, target)
        return await self.client.raw_get(target, timeout=self._download_timeout)

    # ── teardown ────────────────────────────────────────────────

    async def close(self) -> None:
        """Stop and remove the container. Idempotent; failures are logged, not raised."""
        if self._close_task is None:
            self._state = SessionState.CLOSING
            self._close_task = asyncio.ensure_future(self._teardown())
        await asyncio.shield(self._close_task)

    async def _teardown(self) -> None:
        try:
            await self.client.close()
        except Exception as exc:
            logger.warning("session %s: webdriver close failed: %s", self._name, exc)

        try:
            await teardown_container(self._runtime, self._container_name)
        except TeardownError as exc:
            logger.error("session %s: %s", self._name, exc)
        finally:
            self._state = SessionState.CLOSED
            if self._on_closed is not None:
                self._on_closed(self)
            logger.info("session %s closed", self._name)

    def _ensure_open(self) -> None:
        if self._state is not SessionState.CONNECTED:
            raise SessionClosedError(f"session {self._name} is {self._state.value}")

    async def __aenter__(self) -> BrowserSession:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()


async def teardown_container(runtime: ContainerRuntime, container_name: str) -> None:
    """Stop then remove ``container_name``.

    A failed stop alone is tolerated since ``rm -f`` also kills the container.

    Raises:
        TeardownError: If removal fails.
    """
    stop_problem: str | None = None
    try:
        stopped = await runtime.stop(container_name)
        if not stopped.ok:
            stop_problem = f"rc={stopped.returncode}: {stopped.stderr[-200:]}"
    except LaunchError as exc:
        stop_problem = str(exc)

    try:
        removed = await runtime.remove(container_name)
    except LaunchError as exc:
        raise TeardownError(f"failed to remove container {container_name}: {exc}") from exc
    if not removed.ok:
        raise TeardownError(
            f"failed to remove container {container_name} (rc={removed.returncode}): {removed.stderr[-200:]}"
        )

    if stop_problem:
        logger.warning("container %s did not stop cleanly: %s", container_name, stop_problem)
    logger.info("removed container %s", container_name)
