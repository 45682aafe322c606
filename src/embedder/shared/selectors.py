"""CSS selectors for the Open-Graph tags both fetch paths read."""

from __future__ import annotations

DESCRIPTION_SELECTOR = 'meta[property="og:description"]'
TYPE_SELECTOR = 'meta[property="og:type"]'
IMAGE_SELECTOR = 'meta[property="og:image"]'
# book:author, article:author, ...
AUTHOR_SELECTOR = 'meta[property$=":author"]'
COLOUR_SELECTOR = 'meta[name="theme-color"]'
