"""Protocol interfaces for container dependency injection."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from embedder.container.runtime import CommandResult


@runtime_checkable
class ContainerRuntime(Protocol):
    """Protocol for the container runtime CLI."""

    async def image_exists(self, image: str) -> bool:
        """Return True when ``image`` is present locally."""
        ...

    async def build(self, image: str, recipe: str, *, timeout: int | None = None) -> CommandResult:
        """Build ``image`` from a recipe supplied on stdin.

        Raises:
            LaunchError: If the command times out
        """
        ...

    async def run_detached(
        self,
        image: str,
        *,
        name: str,
        port: int,
        command: Sequence[str],
    ) -> CommandResult:
        """Start a detached container publishing ``port`` on the same host port."""
        ...

    async def stop(self, name: str) -> CommandResult:
        """Stop a running container by name."""
        ...

    async def remove(self, name: str) -> CommandResult:
        """Remove a container by name."""
        ...
