"""Tests for BrowserSession."""

from __future__ import annotations

import asyncio
from typing import Any
from unittest.mock import AsyncMock

import pytest

from embedder.browser.session import BrowserSession, teardown_container
from embedder.browser.webdriver import WebDriverClient, WebElement
from embedder.container.runtime import CommandResult
from embedder.shared.enums import SessionState
from embedder.shared.exceptions import (
    AttributeMissingError,
    ElementNotFoundError,
    LaunchError,
    SessionClosedError,
    TeardownError,
    WebDriverError,
)
from embedder.shared.models import Locator


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=WebDriverClient)
    mock.current_url.return_value = "https://example.com/downloads/"
    mock.raw_get.return_value = b"payload"
    return mock


@pytest.fixture
def session(client: AsyncMock, runtime: Any) -> BrowserSession:
    runtime.running.add("embedder-s1")
    return BrowserSession(name="s1", container_name="embedder-s1", port=4444, client=client, runtime=runtime)


def _elements(client: AsyncMock, *ids: str) -> list[WebElement]:
    return [WebElement(client, element_id) for element_id in ids]


class TestQueries:
    async def test_query_attribute_no_match_is_none(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find_all.return_value = []

        assert await session.query_attribute('meta[name="theme-color"]', "content") is None
        client.attribute.assert_not_awaited()

    async def test_query_attribute_first_match(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find_all.return_value = _elements(client, "e1", "e2")
        client.attribute.return_value = "#ff0000"

        assert await session.query_attribute("meta", "content") == "#ff0000"
        client.attribute.assert_awaited_once_with("e1", "content")

    async def test_query_attribute_lookup_error_is_none(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find_all.side_effect = WebDriverError("invalid selector", code="invalid selector")

        assert await session.query_attribute("meta[", "content") is None

    async def test_query_attributes_skips_missing(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find_all.return_value = _elements(client, "a", "b", "c")
        values = {"a": "Alice", "b": None, "c": "Carol"}
        client.attribute.side_effect = lambda element_id, name: values[element_id]

        assert await session.query_attributes('meta[property$=":author"]', "content") == ["Alice", "Carol"]

    async def test_query_attributes_tolerates_stale_element(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find_all.return_value = _elements(client, "a", "b")

        async def attribute(element_id: str, name: str) -> str:
            if element_id == "b":
                raise WebDriverError("stale element reference", code="stale element reference")
            return "Alice"

        client.attribute.side_effect = attribute

        assert await session.query_attributes("meta", "content") == ["Alice"]

    async def test_title_error_is_empty(self, session: BrowserSession, client: AsyncMock) -> None:
        client.title.side_effect = WebDriverError("no such window")
        assert await session.title() == ""

    def test_accessors(self, session: BrowserSession) -> None:
        assert session.name == "s1"
        assert session.port == 4444
        assert session.container_name == "embedder-s1"
        assert session.state is SessionState.CONNECTED


class TestDownloadVia:
    async def test_reads_link_attribute(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find.return_value = WebElement(client, "link")
        client.attribute.return_value = "file.bin"

        body = await session.download_via("https://example.com/downloads/", Locator.css("a.dl"))

        assert body == b"payload"
        client.goto.assert_awaited_once_with("https://example.com/downloads/")
        client.attribute.assert_awaited_once_with("link", "href")
        client.raw_get.assert_awaited_once_with("https://example.com/downloads/file.bin", timeout=300)

    async def test_override_link_bypasses_attribute(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find.return_value = WebElement(client, "link")

        await session.download_via(
            "https://example.com/downloads/",
            Locator.css("a.dl"),
            "data-href",
            override_link="https://mirror.example.net/file.bin",
        )

        client.attribute.assert_not_awaited()
        client.raw_get.assert_awaited_once_with("https://mirror.example.net/file.bin", timeout=300)

    async def test_missing_attribute_is_fatal(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find.return_value = WebElement(client, "link")
        client.attribute.return_value = None

        with pytest.raises(AttributeMissingError, match="href"):
            await session.download_via("https://example.com/", Locator.css("a.dl"))
        client.raw_get.assert_not_awaited()

    async def test_missing_element_is_fatal(self, session: BrowserSession, client: AsyncMock) -> None:
        client.find.side_effect = ElementNotFoundError("no element matches 'a.dl'", code="no such element")

        with pytest.raises(ElementNotFoundError):
            await session.download_via("https://example.com/", Locator.css("a.dl"))


class TestClose:
    async def test_close_stops_and_removes_container(
        self, session: BrowserSession, client: AsyncMock, runtime: Any
    ) -> None:
        await session.close()

        client.close.assert_awaited_once()
        assert ("stop", "embedder-s1") in runtime.calls
        assert ("rm", "embedder-s1") in runtime.calls
        assert "embedder-s1" not in runtime.running
        assert session.state is SessionState.CLOSED

    async def test_close_is_idempotent(self, session: BrowserSession, runtime: Any) -> None:
        await asyncio.gather(session.close(), session.close())
        await session.close()

        assert runtime.count("stop") == 1
        assert runtime.count("rm") == 1

    async def test_context_manager_closes(self, session: BrowserSession, runtime: Any) -> None:
        async with session as s:
            assert s is session

        assert runtime.count("rm") == 1

    async def test_context_manager_closes_on_error(self, session: BrowserSession, runtime: Any) -> None:
        with pytest.raises(RuntimeError):
            async with session:
                raise RuntimeError("boom")

        assert session.state is SessionState.CLOSED
        assert runtime.count("rm") == 1

    async def test_teardown_failure_is_swallowed(
        self, session: BrowserSession, client: AsyncMock, runtime: Any
    ) -> None:
        client.close.side_effect = WebDriverError("session already gone")
        runtime.remove_result = CommandResult(returncode=125, stdout="", stderr="no such container")

        await session.close()

        assert session.state is SessionState.CLOSED

    async def test_use_after_close_raises(self, session: BrowserSession) -> None:
        await session.close()

        with pytest.raises(SessionClosedError, match="closed"):
            await session.navigate("https://example.com/")

    async def test_on_closed_callback(self, client: AsyncMock, runtime: Any) -> None:
        seen: list[BrowserSession] = []
        session = BrowserSession(
            name="s2", container_name="embedder-s2", port=4445, client=client, runtime=runtime, on_closed=seen.append
        )

        await session.close()
        await session.close()

        assert seen == [session]


class TestTeardownContainer:
    async def test_stop_failure_is_tolerated(self, runtime: Any) -> None:
        runtime.stop_result = CommandResult(returncode=125, stdout="", stderr="container not running")

        await teardown_container(runtime, "embedder-x")

        assert runtime.count("rm") == 1

    async def test_remove_failure_raises(self, runtime: Any) -> None:
        runtime.remove_result = CommandResult(returncode=2, stdout="", stderr="device busy")

        with pytest.raises(TeardownError, match="device busy"):
            await teardown_container(runtime, "embedder-x")

    async def test_remove_timeout_raises(self, runtime: Any) -> None:
        async def timed_out(name: str) -> CommandResult:
            raise LaunchError("runtime command timed out after 60s: podman rm -f")

        runtime.remove = timed_out
        with pytest.raises(TeardownError, match="timed out"):
            await teardown_container(runtime, "embedder-x")
