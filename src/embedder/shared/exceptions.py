"""Hierarchical exception types for embedder."""

from __future__ import annotations


class EmbedderError(Exception):
    """Base exception for all embedder errors."""


# ── Session launch ──────────────────────────────────────────────


class LaunchError(EmbedderError):
    """Browser session could not be started."""


class ToolingMissingError(LaunchError):
    """No usable container runtime on the executable search path."""


class BuildError(LaunchError):
    """Container image build failed."""


class LockTimeoutError(LaunchError):
    """Cross-process lock was not acquired in time."""


class PortExhaustedError(LaunchError):
    """No free port left in the configured range."""


class ConnectError(LaunchError):
    """WebDriver client could not connect to the container."""


# ── WebDriver ───────────────────────────────────────────────────


class WebDriverError(EmbedderError):
    """WebDriver command failed."""

    def __init__(self, message: str, *, code: str = "") -> None:
        super().__init__(message)
        self.code = code


class NavigationError(WebDriverError):
    """Page load failed."""


class ElementNotFoundError(WebDriverError):
    """No element matched the locator."""


class AttributeMissingError(WebDriverError):
    """Element does not carry the requested attribute."""


class SessionClosedError(WebDriverError):
    """Session was used after close() began."""


# ── Transfers ───────────────────────────────────────────────────


class DownloadError(EmbedderError):
    """Binary download through a browser session failed."""


class TeardownError(EmbedderError):
    """Container stop or removal failed."""


class FetchError(EmbedderError):
    """Static page fetch failed."""
