import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)

class KeyedLockRegistry:
    """Per-key asyncio locks for operations that delete and re-insert a whole set.

    One registry is built per application instance (see ``stockaudit.main``)
    and handed to services through a FastAPI dependency.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}
        self._guard = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        async with self._guard:
            lock = self._locks.setdefault(key, asyncio.Lock())
            self._waiters[key] = self._waiters.get(key, 0) + 1

        if lock.locked():
            logger.debug(f"Waiting for lock {key}")
        try:
            async with lock:
                yield
        finally:
            async with self._guard:
                self._waiters[key] -= 1
                if self._waiters[key] == 0:
                    # nobody else queued on this key
                    del self._waiters[key]
                    del self._locks[key]

    def is_held(self, key: str) -> bool:
        lock = self._locks.get(key)
        return bool(lock and lock.locked())

    def size(self) -> int:
        """Number of keys currently held or waited on"""
        return len(self._locks)
