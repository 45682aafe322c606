"""Container runtime discovery and CLI wrapper (podman or docker)."""

from __future__ import annotations

import asyncio
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from embedder.shared.exceptions import LaunchError, ToolingMissingError

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES = ("podman", "docker")


def locate_runtime(candidates: Sequence[str] = DEFAULT_CANDIDATES) -> str:
    """Return the path of the first container runtime found on ``PATH``.

    Rootless ``podman`` is preferred over ``docker``.

    Raises:
        ToolingMissingError: If none of the candidates is installed.
    """
    for name in candidates:
        path = shutil.which(name)
        if path:
            logger.debug("using container runtime %s", path)
            return path
    raise ToolingMissingError(f"no container runtime installed (tried: {', '.join(candidates)})")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of one runtime CLI invocation."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CliContainerRuntime:
    """Drives a podman/docker compatible CLI through async subprocess calls.

    Implements the ``ContainerRuntime`` protocol.
    """

    def __init__(self, runtime_bin: str, *, timeout: int = 60) -> None:
        self.runtime_bin = runtime_bin
        self._timeout = timeout

    async def image_exists(self, image: str) -> bool:
        # docker has no `image exists`; `image inspect` fails the same way when absent
        verb = "inspect" if Path(self.runtime_bin).name.startswith("docker") else "exists"
        result = await self._run("image", verb, image)
        return result.ok

    async def build(self, image: str, recipe: str, *, timeout: int | None = None) -> CommandResult:
        """Build ``image`` from a recipe streamed to stdin (``build -f - -t <image> .``)."""
        return await self._run("build", "-f", "-", "-t", image, ".", stdin=recipe.encode(), timeout=timeout)

    async def run_detached(
        self,
        image: str,
        *,
        name: str,
        port: int,
        command: Sequence[str],
    ) -> CommandResult:
        return await self._run("run", "-d", "-p", f"{port}:{port}", "--name", name, image, *command)

    async def stop(self, name: str) -> CommandResult:
        return await self._run("stop", name)

    async def remove(self, name: str) -> CommandResult:
        return await self._run("rm", "-f", name)

    async def _run(self, *args: str, stdin: bytes | None = None, timeout: int | None = None) -> CommandResult:
        """Run a runtime command and capture its output."""
        cmd = [self.runtime_bin, *args]
        limit = timeout or self._timeout
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise ToolingMissingError(f"container runtime not found: {self.runtime_bin}") from exc

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(input=stdin), timeout=limit)
        except asyncio.TimeoutError as exc:
            proc.kill()
            raise LaunchError(f"runtime command timed out after {limit}s: {' '.join(cmd[:3])}") from exc

        result = CommandResult(
            returncode=proc.returncode or 0,
            stdout=stdout_b.decode(errors="replace").strip(),
            stderr=stderr_b.decode(errors="replace").strip(),
        )
        logger.debug("%s -> rc=%d", " ".join(cmd[:3]), result.returncode)
        return result
