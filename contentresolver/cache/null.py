from typing import Optional

from contentresolver.cache.cache import Cache


class NoCache(Cache):
    """Cache that stores nothing."""

    async def get(self, key: str) -> Optional[bytes]:
        return None

    async def set(self, key: str, value: bytes) -> None:
        pass

    async def contains(self, key: str) -> bool:
        return False

    async def remove(self, key: str) -> None:
        pass

    async def clear(self) -> None:
        pass
