from abc import ABC, abstractmethod
from typing import Optional


class Cache(ABC):
    """Abstract class for byte cache keyed by string.

    Implementations must be safe under concurrent use.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Get cached value.

        Parameters
        ----------
        key : str
            Cache key.

        Returns
        -------
        Optional[bytes]
            Cached value, None if the key is not set.

        Raises
        ------
        CacheError
            If the store failed to read the value.
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Store value.

        Parameters
        ----------
        key : str
            Cache key.
        value : bytes
            Value to store.
        """
        pass

    @abstractmethod
    async def contains(self, key: str) -> bool:
        """Check whether a value is stored under `key`."""
        pass

    @abstractmethod
    async def remove(self, key: str) -> None:
        """Remove value, no-op for an unset key."""
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every value."""
        pass
