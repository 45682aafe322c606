"""Open-Graph metadata extraction from a rendered page."""

from __future__ import annotations

import asyncio
import logging

from embedder.browser.interfaces import PageQuerySource
from embedder.shared.enums import OgType
from embedder.shared.models import WebData
from embedder.shared.selectors import (
    AUTHOR_SELECTOR,
    COLOUR_SELECTOR,
    DESCRIPTION_SELECTOR,
    IMAGE_SELECTOR,
    TYPE_SELECTOR,
)
from embedder.static.parser import resolve_url

logger = logging.getLogger(__name__)


async def extract_metadata(session: PageQuerySource, url: str) -> WebData:
    """Navigate ``session`` to ``url`` and read its metadata.

    Missing tags leave the corresponding field absent.

    Raises:
        NavigationError: If the page fails to load.
    """
    await session.navigate(url)

    title, description, og_type, image, authors, colour = await asyncio.gather(
        session.title(),
        session.query_attribute(DESCRIPTION_SELECTOR, "content"),
        session.query_attribute(TYPE_SELECTOR, "content"),
        session.query_attribute(IMAGE_SELECTOR, "content"),
        session.query_attributes(AUTHOR_SELECTOR, "content"),
        session.query_attribute(COLOUR_SELECTOR, "content"),
    )

    data = WebData(
        title=title,
        type=OgType.from_meta(og_type),
        description=description,
        image=resolve_url(image, url) if image else None,
        author=authors,
        colour=colour,
    )
    logger.debug("extracted metadata for %s: type=%s authors=%d", url, data.type.value, len(data.author))
    return data
