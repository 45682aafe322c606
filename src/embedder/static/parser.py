"""HTML metadata extraction via BeautifulSoup."""

from __future__ import annotations

import logging
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from embedder.shared.enums import OgType
from embedder.shared.models import WebData
from embedder.shared.selectors import (
    AUTHOR_SELECTOR,
    COLOUR_SELECTOR,
    DESCRIPTION_SELECTOR,
    IMAGE_SELECTOR,
    TYPE_SELECTOR,
)

logger = logging.getLogger(__name__)


def resolve_url(url: str, base: str) -> str:
    """Resolve a root- or dot-relative ``url`` against the origin of ``base``.

    Anything else (absolute URLs, bare relative paths) is returned unchanged.
    """
    if url.startswith("/") or url.startswith("./"):
        parsed = urlparse(base)
        origin = f"{parsed.scheme}://{parsed.netloc}/"
        return urljoin(origin, url)
    return url


def _content(tag: Tag | None) -> str | None:
    if tag is None:
        return None
    value = tag.get("content")
    return value if isinstance(value, str) else None


class BeautifulSoupMetadataParser:
    """Read Open-Graph metadata from raw HTML."""

    def parse(self, html: str, url: str) -> WebData:
        """Parse ``html`` fetched from ``url``.

        Args:
            html: Raw HTML document.
            url: Page URL, used to resolve a relative ``og:image``.

        Returns:
            Extracted metadata; missing tags leave fields absent.
        """
        soup = BeautifulSoup(html, "lxml")

        title_tag = soup.find("title")
        title = title_tag.get_text() if title_tag is not None else ""

        image = _content(soup.select_one(IMAGE_SELECTOR))
        authors = [value for value in (_content(t) for t in soup.select(AUTHOR_SELECTOR)) if value is not None]

        data = WebData(
            title=title,
            type=OgType.from_meta(_content(soup.select_one(TYPE_SELECTOR))),
            description=_content(soup.select_one(DESCRIPTION_SELECTOR)),
            image=resolve_url(image, url) if image else None,
            author=authors,
            colour=_content(soup.select_one(COLOUR_SELECTOR)),
        )
        logger.debug("parsed metadata for %s (type=%s)", url, data.type.value)
        return data
