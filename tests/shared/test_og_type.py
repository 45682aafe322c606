"""Tests for domain enums and models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from embedder.shared.enums import LocatorStrategy, OgType
from embedder.shared.models import Locator, WebData


class TestOgType:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("music.song", OgType.MUSIC_SONG),
            ("music.radio_station", OgType.MUSIC_RADIO_STATION),
            ("video.tv_show", OgType.VIDEO_TV_SHOW),
            ("article", OgType.ARTICLE),
            ("book", OgType.BOOK),
            ("profile", OgType.PROFILE),
            ("website", OgType.WEBSITE),
        ],
    )
    def test_known_values(self, raw: str, expected: OgType) -> None:
        assert OgType.from_meta(raw) is expected

    def test_unknown_value_is_website(self) -> None:
        assert OgType.from_meta("restaurant.menu") is OgType.WEBSITE

    def test_missing_value_is_website(self) -> None:
        assert OgType.from_meta(None) is OgType.WEBSITE
        assert OgType.from_meta("") is OgType.WEBSITE

    def test_tolerates_case_and_whitespace(self) -> None:
        assert OgType.from_meta(" Article ") is OgType.ARTICLE


class TestWebData:
    def test_defaults(self) -> None:
        data = WebData()
        assert data.title == ""
        assert data.type is OgType.WEBSITE
        assert data.description is None
        assert data.image is None
        assert data.author == []
        assert data.colour is None

    def test_frozen(self) -> None:
        data = WebData(title="x")
        with pytest.raises(ValidationError):
            data.title = "y"  # type: ignore[misc]

    def test_json_uses_og_values(self) -> None:
        data = WebData(title="t", type=OgType.VIDEO_MOVIE, author=["a"])
        assert '"type":"video.movie"' in data.model_dump_json()


class TestLocator:
    def test_css_payload(self) -> None:
        assert Locator.css("a.dl").to_payload() == {"using": "css selector", "value": "a.dl"}

    def test_id_maps_to_css(self) -> None:
        loc = Locator.id("download")
        assert loc.strategy is LocatorStrategy.CSS
        assert loc.value == "#download"

    def test_xpath(self) -> None:
        assert Locator.xpath("//a").to_payload()["using"] == "xpath"
