from typing import Optional

import aiorwlock

from contentresolver.cache.cache import Cache


class MemoryCache(Cache):
    """In-memory cache, lost on process restart.

    The mapping is guarded by a reader/writer lock: reads run concurrently,
    a write excludes every other access.
    """

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}
        self._lock = aiorwlock.RWLock()

    async def get(self, key: str) -> Optional[bytes]:
        async with self._lock.reader_lock:
            return self._store.get(key)

    async def set(self, key: str, value: bytes) -> None:
        async with self._lock.writer_lock:
            self._store[key] = bytes(value)

    async def contains(self, key: str) -> bool:
        async with self._lock.reader_lock:
            return key in self._store

    async def remove(self, key: str) -> None:
        async with self._lock.writer_lock:
            self._store.pop(key, None)

    async def clear(self) -> None:
        async with self._lock.writer_lock:
            self._store.clear()

    async def size(self) -> int:
        async with self._lock.reader_lock:
            return len(self._store)
