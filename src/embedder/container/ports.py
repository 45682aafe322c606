"""Loopback port allocation under a cross-process lock."""

from __future__ import annotations

import logging
import socket

from embedder.container.locks import FileLock
from embedder.shared.exceptions import PortExhaustedError

logger = logging.getLogger(__name__)


def is_port_free(port: int, host: str = "127.0.0.1") -> bool:
    """Probe ``port`` by binding a socket and releasing it immediately."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((host, port))
        except OSError:
            return False
    return True


class PortAllocator:
    """Find a free loopback TCP port, one scan at a time system-wide.

    The probe socket is closed before the container binds the port, so another
    process may still grab it in between; launchers retry on bind conflicts.
    """

    def __init__(
        self,
        *,
        lock_path: str,
        range_start: int = 4444,
        range_end: int = 4544,
        poll_interval: float = 0.5,
        lock_timeout: float = 600,
    ) -> None:
        if range_end < range_start:
            raise ValueError(f"empty port range {range_start}-{range_end}")
        self._lock_path = lock_path
        self._range_start = range_start
        self._range_end = range_end
        self._poll_interval = poll_interval
        self._lock_timeout = lock_timeout
        self._reserved: set[int] = set()

    @property
    def reserved(self) -> frozenset[int]:
        return frozenset(self._reserved)

    async def allocate(self, preferred: int | None = None) -> int:
        """Return ``preferred`` as-is, or the first free port in the range.

        Returned ports, preferred or scanned, stay reserved in this allocator
        until :meth:`release`, so later scans skip them.

        Args:
            preferred: Caller-chosen port; returned without probing.

        Raises:
            PortExhaustedError: If every port in the range is busy.
            LockTimeoutError: If another process holds the port lock too long.
        """
        if preferred is not None:
            self._reserved.add(preferred)
            return preferred

        lock = FileLock(self._lock_path, poll_interval=self._poll_interval, timeout=self._lock_timeout)
        async with lock:
            for port in range(self._range_start, self._range_end + 1):
                if port in self._reserved:
                    continue
                if is_port_free(port):
                    self._reserved.add(port)
                    logger.info("allocated port %d", port)
                    return port

        raise PortExhaustedError(f"no free port in {self._range_start}-{self._range_end}")

    def release(self, port: int) -> None:
        """Make ``port`` available to later scans again."""
        self._reserved.discard(port)
