"""Cross-process advisory file locks.

``flock`` locks are owned by the open file description, so the kernel releases
them when the holding process exits or crashes. Acquisition polls a
non-blocking attempt on a fixed interval and gives up after a timeout.
"""

from __future__ import annotations

import asyncio
import fcntl
import logging
import os
import time
from pathlib import Path
from types import TracebackType
from typing import IO

from embedder.shared.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


class FileLock:
    """Exclusive advisory lock on a file path, usable as ``async with``."""

    def __init__(self, path: str | Path, *, poll_interval: float = 0.5, timeout: float = 600) -> None:
        self.path = Path(path)
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._fd: IO[str] | None = None

    @property
    def held(self) -> bool:
        return self._fd is not None

    def try_acquire(self) -> bool:
        """Attempt to take the lock once without blocking."""
        if self._fd is not None:
            return True
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = open(self.path, "a+")  # noqa: SIM115 - kept open while the lock is held
        try:
            fcntl.flock(fd.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fd.close()
            return False
        fd.seek(0)
        fd.truncate()
        fd.write(f"{os.getpid()} {time.time():.0f}\n")
        fd.flush()
        self._fd = fd
        return True

    async def acquire(self) -> None:
        """Poll until the lock is held.

        Raises:
            LockTimeoutError: If another holder keeps it past the timeout.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._timeout
        while not self.try_acquire():
            if loop.time() >= deadline:
                raise LockTimeoutError(f"lock {self.path} still held after {self._timeout}s")
            logger.debug("waiting for lock %s", self.path)
            await asyncio.sleep(self._poll_interval)
        logger.debug("acquired lock %s", self.path)

    def release(self) -> None:
        if self._fd is None:
            return
        try:
            fcntl.flock(self._fd.fileno(), fcntl.LOCK_UN)
        finally:
            self._fd.close()
            self._fd = None
        logger.debug("released lock %s", self.path)

    async def __aenter__(self) -> FileLock:
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()
