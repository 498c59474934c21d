"""
Keyed asyncio lock
Serializes coroutines that touch the same key (an order id) while letting
different keys proceed concurrently
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Dict, Hashable

logger = logging.getLogger(__name__)


class KeyedLock:
    """One asyncio.Lock per key, dropped again once nobody holds or waits on it"""

    def __init__(self, name: str = "keyed_lock"):
        self.name = name
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable):
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1

        if lock.locked():
            logger.debug(f"⏳ LOCK_CONTENTION: {self.name} key={key}")
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_held(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)

    def __bool__(self) -> bool:
        # An idle lock table is still a usable lock
        return True
