"""Domain enumerations used across all modules."""

from __future__ import annotations

from enum import Enum, unique


@unique
class OgType(str, Enum):
    """Open-Graph media type of a page (``og:type``)."""

    MUSIC_SONG = "music.song"
    MUSIC_ALBUM = "music.album"
    MUSIC_PLAYLIST = "music.playlist"
    MUSIC_RADIO_STATION = "music.radio_station"

    VIDEO_MOVIE = "video.movie"
    VIDEO_EPISODE = "video.episode"
    VIDEO_TV_SHOW = "video.tv_show"
    VIDEO_OTHER = "video.other"

    ARTICLE = "article"
    BOOK = "book"
    PROFILE = "profile"

    WEBSITE = "website"

    @classmethod
    def from_meta(cls, value: str | None) -> OgType:
        """Map an ``og:type`` content value; anything unknown is a website."""
        if not value:
            return cls.WEBSITE
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.WEBSITE


@unique
class SessionState(str, Enum):
    """Lifecycle states for a browser session."""

    LAUNCHING = "launching"
    CONNECTED = "connected"
    CLOSING = "closing"
    CLOSED = "closed"


@unique
class LocatorStrategy(str, Enum):
    """W3C WebDriver element location strategies."""

    CSS = "css selector"
    XPATH = "xpath"
    LINK_TEXT = "link text"
    PARTIAL_LINK_TEXT = "partial link text"
    TAG_NAME = "tag name"
