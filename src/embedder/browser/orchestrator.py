"""Browser-session orchestrator: image → port → container → WebDriver session."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any

from embedder.browser.session import BrowserSession, teardown_container
from embedder.browser.webdriver import WebDriverClient
from embedder.config import Settings
from embedder.container.image import ImageBuilder
from embedder.container.interfaces import ContainerRuntime
from embedder.container.ports import PortAllocator
from embedder.container.runtime import CliContainerRuntime, locate_runtime
from embedder.shared.exceptions import ConnectError, LaunchError, TeardownError

logger = logging.getLogger(__name__)

_VALID_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")
_PORT_CONFLICT_MARKERS = ("address already in use", "port is already allocated", "bind:")


def _is_port_conflict(stderr: str) -> bool:
    lowered = stderr.lower()
    return any(marker in lowered for marker in _PORT_CONFLICT_MARKERS)


class Orchestrator:
    """Launch isolated browser sessions in disposable containers.

    Holds the per-process registry of live session names and ports. Names
    must be unique among live sessions; ports are reserved until the session
    closes or its launch fails.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        runtime: ContainerRuntime | None = None,
        ports: PortAllocator | None = None,
        images: ImageBuilder | None = None,
    ) -> None:
        self.settings = settings
        self._runtime = runtime
        self._ports = ports or PortAllocator(
            lock_path=settings.port_lock_path,
            range_start=settings.port_range_start,
            range_end=settings.port_range_end,
            poll_interval=settings.lock_poll_interval,
            lock_timeout=settings.lock_timeout_seconds,
        )
        self._images = images
        self._sessions: dict[str, BrowserSession] = {}
        self._pending: set[str] = set()

    @property
    def sessions(self) -> dict[str, BrowserSession]:
        return dict(self._sessions)

    def runtime(self) -> ContainerRuntime:
        """Resolve the container runtime on first use.

        Raises:
            ToolingMissingError: If neither podman nor docker is installed.
        """
        if self._runtime is None:
            path = self.settings.runtime or locate_runtime(self.settings.runtime_candidates)
            self._runtime = CliContainerRuntime(path, timeout=self.settings.command_timeout_seconds)
        return self._runtime

    def image_builder(self) -> ImageBuilder:
        if self._images is None:
            self._images = ImageBuilder(
                self.runtime(),
                image=self.settings.image_name,
                lock_path=self.settings.build_lock_path,
                poll_interval=self.settings.lock_poll_interval,
                lock_timeout=self.settings.lock_timeout_seconds,
                build_timeout=self.settings.build_timeout_seconds,
            )
        return self._images

    def container_name(self, name: str) -> str:
        return f"{self.settings.container_prefix}-{name}"

    async def launch(
        self,
        name: str,
        capabilities: dict[str, Any] | None = None,
        port: int | None = None,
    ) -> BrowserSession:
        """Start a browser container and connect a WebDriver session to it.

        Args:
            name: Logical session name, unique among live sessions.
            capabilities: WebDriver ``alwaysMatch`` capabilities.
            port: Host port to publish; allocated from the range when omitted.

        Returns:
            Connected session handle. Close it (or use ``async with``).

        Raises:
            LaunchError: Naming conflict or container start failure; subclasses
                identify the failing step (ToolingMissingError, BuildError,
                LockTimeoutError, PortExhaustedError, ConnectError).
        """
        if not _VALID_NAME.match(name):
            raise LaunchError(f"invalid session name {name!r}")
        if name in self._sessions or name in self._pending:
            raise LaunchError(f"session {name!r} is already running")

        self._pending.add(name)
        try:
            runtime = self.runtime()
            await self.image_builder().ensure_image_built()
            chosen = await self._start_container(runtime, name, port)
            session = await self._connect(runtime, name, chosen, capabilities)
        finally:
            self._pending.discard(name)

        self._sessions[name] = session
        return session

    async def close_all(self) -> None:
        """Close every live session."""
        await asyncio.gather(*(s.close() for s in list(self._sessions.values())))

    async def _start_container(self, runtime: ContainerRuntime, name: str, preferred: int | None) -> int:
        container = self.container_name(name)
        attempts = 1 if preferred is not None else max(1, self.settings.launch_retries)

        for attempt in range(1, attempts + 1):
            port = await self._ports.allocate(preferred)
            try:
                result = await runtime.run_detached(
                    self.settings.image_name,
                    name=container,
                    port=port,
                    command=[self.settings.driver_binary, "--host", "0.0.0.0", "-p", str(port)],
                )
            except LaunchError:
                self._ports.release(port)
                raise
            except asyncio.CancelledError:
                self._ports.release(port)
                # `run` may have created the container before the cancel landed
                await asyncio.shield(runtime.remove(container))
                raise
            if result.ok:
                logger.info("started container %s on port %d", container, port)
                return port

            self._ports.release(port)
            if preferred is None and _is_port_conflict(result.stderr) and attempt < attempts:
                logger.warning("port %d taken before %s bound it, retrying (%d/%d)", port, container, attempt, attempts)
                # a failed `run` may still leave a created container behind
                await runtime.remove(container)
                continue
            raise LaunchError(f"failed to start container {container} (rc={result.returncode}): {result.stderr[-500:]}")

        raise LaunchError(f"failed to start container {container} after {attempts} attempts")

    async def _connect(
        self,
        runtime: ContainerRuntime,
        name: str,
        port: int,
        capabilities: dict[str, Any] | None,
    ) -> BrowserSession:
        container = self.container_name(name)
        client = WebDriverClient(f"http://127.0.0.1:{port}", timeout=self.settings.request_timeout_seconds)
        try:
            await client.connect(capabilities, timeout=self.settings.connect_timeout_seconds)
        except BaseException as exc:
            if isinstance(exc, ConnectError):
                logger.error("could not connect to driver in %s, tearing it down", container)
            else:
                logger.warning("launch of %s interrupted (%r), tearing it down", container, exc)
            await asyncio.shield(self._abandon(runtime, client, container, port))
            raise

        return BrowserSession(
            name=name,
            container_name=container,
            port=port,
            client=client,
            runtime=runtime,
            download_timeout=self.settings.download_timeout_seconds,
            on_closed=self._forget,
        )

    async def _abandon(self, runtime: ContainerRuntime, client: WebDriverClient, container: str, port: int) -> None:
        """Undo a launch whose container started but never became a session."""
        try:
            await client.close()
        except Exception as exc:
            logger.warning("failed to close driver client for %s: %r", container, exc)
        try:
            await teardown_container(runtime, container)
        except TeardownError as exc:
            logger.error("%s", exc)
        finally:
            self._ports.release(port)

    def _forget(self, session: BrowserSession) -> None:
        if self._sessions.get(session.name) is session:
            del self._sessions[session.name]
        self._ports.release(session.port)
