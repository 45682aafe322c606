"""Command-line entry point: fetch metadata or download through a browser session."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid
from pathlib import Path

from embedder.browser.extractor import extract_metadata
from embedder.browser.orchestrator import Orchestrator
from embedder.config import Settings, get_settings
from embedder.shared.exceptions import EmbedderError
from embedder.shared.models import Locator, WebData
from embedder.static.fetcher import HttpxPageFetcher

logger = logging.getLogger(__name__)


def _session_name(raw: str | None) -> str:
    return raw or f"cli-{uuid.uuid4().hex[:8]}"


async def run_fetch(settings: Settings, url: str, *, browser: bool, name: str | None = None) -> WebData:
    """Fetch metadata for ``url`` over plain HTTP or through a fresh browser session."""
    if not browser:
        fetcher = HttpxPageFetcher(timeout=settings.request_timeout_seconds, user_agent=settings.user_agent)
        return await fetcher.fetch(url)

    orchestrator = Orchestrator(settings)
    async with await orchestrator.launch(_session_name(name)) as session:
        return await extract_metadata(session, url)


async def run_download(
    settings: Settings,
    url: str,
    *,
    css: str,
    attribute: str = "href",
    override: str | None = None,
    name: str | None = None,
) -> bytes:
    """Download the file linked from ``url`` through a fresh browser session."""
    orchestrator = Orchestrator(settings)
    async with await orchestrator.launch(_session_name(name)) as session:
        return await session.download_via(url, Locator.css(css), attribute, override)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="embedder", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="print Open-Graph metadata as JSON")
    fetch.add_argument("url")
    fetch.add_argument("--browser", action="store_true", help="render the page in a browser container")
    fetch.add_argument("--name", help="session name (default: random)")

    download = sub.add_parser("download", help="download a linked file through a browser session")
    download.add_argument("url")
    download.add_argument("--css", required=True, help="CSS selector of the link element")
    download.add_argument("--attr", default="href", help="attribute that holds the link")
    download.add_argument("--override", help="fetch this link instead of the element's")
    download.add_argument("--output", "-o", required=True, type=Path)
    download.add_argument("--name", help="session name (default: random)")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``embedder`` / ``python -m embedder.cli``."""
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level = logging.DEBUG if settings.debug else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        if args.command == "fetch":
            data = asyncio.run(run_fetch(settings, args.url, browser=args.browser, name=args.name))
            print(data.model_dump_json(indent=2))
        else:
            body = asyncio.run(
                run_download(
                    settings,
                    args.url,
                    css=args.css,
                    attribute=args.attr,
                    override=args.override,
                    name=args.name,
                )
            )
            args.output.write_bytes(body)
            logger.info("wrote %d bytes to %s", len(body), args.output)
    except EmbedderError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
