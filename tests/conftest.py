"""Shared pytest fixtures for the embedder test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

import pytest

from embedder.config import Settings
from embedder.container.runtime import CommandResult

OK = CommandResult(returncode=0, stdout="", stderr="")


class FakeRuntime:
    """In-memory stand-in for the podman/docker CLI that records every call."""

    def __init__(self, *, image_present: bool = False, build_delay: float = 0.0) -> None:
        self.image_present = image_present
        self.build_delay = build_delay
        self.calls: list[tuple[str, ...]] = []
        self.running: set[str] = set()
        self.run_results: list[CommandResult] = []
        self.build_result = OK
        self.stop_result = OK
        self.remove_result = OK

    def count(self, verb: str) -> int:
        return sum(1 for call in self.calls if call[0] == verb)

    async def image_exists(self, image: str) -> bool:
        self.calls.append(("image_exists", image))
        return self.image_present

    async def build(self, image: str, recipe: str, *, timeout: int | None = None) -> CommandResult:
        self.calls.append(("build", image))
        await asyncio.sleep(self.build_delay)
        if self.build_result.ok:
            self.image_present = True
        return self.build_result

    async def run_detached(self, image: str, *, name: str, port: int, command: Sequence[str]) -> CommandResult:
        self.calls.append(("run", image, name, str(port), *command))
        result = self.run_results.pop(0) if self.run_results else OK
        if result.ok:
            self.running.add(name)
        return result

    async def stop(self, name: str) -> CommandResult:
        self.calls.append(("stop", name))
        return self.stop_result

    async def remove(self, name: str) -> CommandResult:
        self.calls.append(("rm", name))
        if self.remove_result.ok:
            self.running.discard(name)
        return self.remove_result


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Return a Settings instance with test defaults and private lock files."""
    return Settings(
        runtime="/usr/bin/podman",
        build_lock_path=str(tmp_path / "build.lock"),
        port_lock_path=str(tmp_path / "port.lock"),
        lock_poll_interval=0.01,
        lock_timeout_seconds=5,
        port_range_start=47000,
        port_range_end=47100,
        connect_timeout_seconds=1,
    )


@pytest.fixture()
def runtime() -> FakeRuntime:
    return FakeRuntime(image_present=True)
