"""Per-device mutual exclusion with a bounded wait.

Contention is an expected condition: callers catch
:class:`LockContentionError`, skip the cycle and retry soon.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from iiyama_display.protocol.exceptions import IiyamaError

MIN_LOCK_TIMEOUT_SECONDS = 0.1


class LockContentionError(IiyamaError):
    """Device lock could not be acquired within its timeout.

    Attributes:
        operation: Cycle that gave up ("poll", "set_power", ...)
        timeout: Seconds waited

    """

    def __init__(self, operation: str, timeout: float):
        self.operation = operation
        self.timeout = timeout
        super().__init__("lock_contention", f"Device busy ({operation})")


class DeviceLock:
    """Serializes poll and action cycles of one display."""

    def __init__(self, timeout: float = 2.0):
        self.timeout = max(MIN_LOCK_TIMEOUT_SECONDS, timeout)
        self._lock = asyncio.Lock()

    @property
    def locked(self) -> bool:
        """True while a cycle holds the lock."""
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self, operation: str) -> AsyncIterator[None]:
        """Hold the lock for the duration of the block.

        Raises:
            LockContentionError: lock still busy after ``timeout`` seconds
        """
        try:
            await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
        except TimeoutError as e:
            raise LockContentionError(operation, self.timeout) from e
        try:
            yield
        finally:
            self._lock.release()
