"""Frozen domain models shared by all modules."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, Field

from embedder.shared.enums import LocatorStrategy, OgType


class WebData(BaseModel):
    """Open-Graph style metadata extracted from one page."""

    model_config = {"frozen": True}

    # Website title
    title: str = ""
    # Open-Graph media type
    type: OgType = OgType.WEBSITE
    # Open-Graph provided description
    description: str | None = None
    # Open-Graph banner image, resolved to an absolute URL
    image: str | None = None
    # Open-Graph authors (book:author, article:author, ...)
    author: list[str] = Field(default_factory=list)
    # Accent colour of the website
    colour: str | None = None


@dataclass(frozen=True, slots=True)
class Locator:
    """How to find an element through WebDriver."""

    strategy: LocatorStrategy
    value: str

    @classmethod
    def css(cls, selector: str) -> Locator:
        return cls(LocatorStrategy.CSS, selector)

    @classmethod
    def xpath(cls, expression: str) -> Locator:
        return cls(LocatorStrategy.XPATH, expression)

    @classmethod
    def id(cls, element_id: str) -> Locator:
        # W3C WebDriver dropped the id strategy
        return cls(LocatorStrategy.CSS, f"#{element_id}")

    @classmethod
    def link_text(cls, text: str) -> Locator:
        return cls(LocatorStrategy.LINK_TEXT, text)

    def to_payload(self) -> dict[str, str]:
        return {"using": self.strategy.value, "value": self.value}
