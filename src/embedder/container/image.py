"""Build-once management of the browser driver image."""

from __future__ import annotations

import asyncio
import logging

from embedder.container.interfaces import ContainerRuntime
from embedder.container.locks import FileLock
from embedder.container.recipe import DOCKERFILE
from embedder.shared.exceptions import BuildError, LaunchError, ToolingMissingError

logger = logging.getLogger(__name__)


class ImageBuilder:
    """Ensure the driver image exists, building it at most once system-wide.

    Callers in other processes are serialized through an advisory file lock;
    callers in this process additionally share an ``asyncio.Lock`` and skip
    the runtime round-trip once the image is known to exist.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        *,
        image: str,
        lock_path: str,
        recipe: str = DOCKERFILE,
        poll_interval: float = 0.5,
        lock_timeout: float = 600,
        build_timeout: int = 1800,
    ) -> None:
        self.runtime = runtime
        self.image = image
        self._lock_path = lock_path
        self._recipe = recipe
        self._poll_interval = poll_interval
        self._lock_timeout = lock_timeout
        self._build_timeout = build_timeout
        self._local_lock = asyncio.Lock()
        self._known_built = False

    async def ensure_image_built(self) -> None:
        """Make sure the image exists.

        Raises:
            BuildError: If the build command fails or times out.
            LockTimeoutError: If another process holds the build lock too long.
        """
        if self._known_built:
            return

        async with self._local_lock:
            if self._known_built:
                return
            lock = FileLock(self._lock_path, poll_interval=self._poll_interval, timeout=self._lock_timeout)
            async with lock:
                if await self.runtime.image_exists(self.image):
                    logger.debug("image %s already present", self.image)
                else:
                    await self._build()
            self._known_built = True

    async def _build(self) -> None:
        logger.info("building image %s", self.image)
        try:
            result = await self.runtime.build(self.image, self._recipe, timeout=self._build_timeout)
        except ToolingMissingError:
            raise
        except LaunchError as exc:
            raise BuildError(f"failed to build image {self.image}: {exc}") from exc

        logger.debug("build output for %s:\n%s", self.image, result.stdout[-2000:])
        if not result.ok:
            raise BuildError(f"failed to build image {self.image} (rc={result.returncode}): {result.stderr[-500:]}")
        logger.info("built image %s", self.image)
