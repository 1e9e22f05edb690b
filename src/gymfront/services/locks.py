"""Per-resource write serialization."""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class ResourceLocks:
    """Hands out one asyncio lock per resource key.

    Writes to the same key run one after another in arrival order;
    writes to different keys still overlap.
    """

    def __init__(self):
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def is_busy(self, key: str) -> bool:
        return key in self._waiters
