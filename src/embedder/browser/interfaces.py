"""Protocol interfaces for browser-session dependency injection."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from embedder.browser.session import BrowserSession


@runtime_checkable
class PageQuerySource(Protocol):
    """Anything that can load a page and answer selector queries on it."""

    async def navigate(self, url: str) -> None:
        """Load ``url``.

        Raises:
            NavigationError: If the page fails to load
        """
        ...

    async def title(self) -> str:
        """Return the document title, or an empty string."""
        ...

    async def query_attribute(self, selector: str, attribute: str) -> str | None:
        """Return the attribute of the first match, or None when nothing matches."""
        ...

    async def query_attributes(self, selector: str, attribute: str) -> list[str]:
        """Return the attribute of every match, or an empty list."""
        ...


@runtime_checkable
class SessionLauncher(Protocol):
    """Protocol for starting browser sessions."""

    async def launch(
        self,
        name: str,
        capabilities: dict[str, Any] | None = None,
        port: int | None = None,
    ) -> BrowserSession:
        """Start a named session.

        Raises:
            LaunchError: If any launch step fails
        """
        ...
