"""Browser-less metadata fetch using httpx."""

from __future__ import annotations

import logging

import httpx

from embedder.shared.exceptions import FetchError
from embedder.shared.models import WebData
from embedder.static.parser import BeautifulSoupMetadataParser

logger = logging.getLogger(__name__)


class HttpxPageFetcher:
    """Fetch a page over plain HTTP and extract its metadata.

    Suitable for pages that carry their Open-Graph tags in the served HTML;
    JS-rendered pages need a browser session instead.
    """

    def __init__(
        self,
        *,
        parser: BeautifulSoupMetadataParser | None = None,
        timeout: int = 30,
        user_agent: str = "Mozilla/5.0",
    ) -> None:
        self._parser = parser or BeautifulSoupMetadataParser()
        self._timeout = timeout
        self._user_agent = user_agent

    async def fetch(self, url: str) -> WebData:
        """Fetch ``url`` and return its metadata.

        Raises:
            FetchError: If the request fails or returns an error status.
        """
        html = await self.fetch_html(url)
        return self._parser.parse(html, url)

    async def fetch_html(self, url: str) -> str:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            ) as client:
                resp = await client.get(url)
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(f"{url} returned {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"failed to fetch {url}: {exc!r}") from exc

        logger.info("fetched %s (%d bytes)", url, len(resp.content))
        return resp.text
