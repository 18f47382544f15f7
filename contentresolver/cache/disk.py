import hashlib
import os
from typing import Optional

import aiofiles
import aiofiles.os
import aioshutil

from contentresolver.cache.cache import Cache
from contentresolver.errors import CacheError, InvalidConfigError


class DiskCache(Cache):
    """Content-addressed on-disk cache.

    A key is stored at `<root>/<h[:2]>/<h[2:]>` where `h` is the SHA-256 hex
    digest of the key. No in-process locking: concurrent writers of one key
    race and the last completed write wins.

    Attributes
    ----------
    root_dir : str
        Cache root directory, created if missing.
    """

    def __init__(self, root_dir: str) -> None:
        self.root_dir = os.path.abspath(os.path.expanduser(root_dir))
        try:
            os.makedirs(self.root_dir, exist_ok=True)
        except OSError as err:
            raise InvalidConfigError(f"cannot create cache directory '{self.root_dir}': {err}") from err

    def path_for(self, key: str) -> str:
        digest = hashlib.sha256(key.encode('utf-8')).hexdigest()
        return os.path.join(self.root_dir, digest[:2], digest[2:])

    async def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        try:
            async with aiofiles.open(path, 'rb') as f:
                return await f.read()
        except FileNotFoundError:
            return None
        except OSError as err:
            raise CacheError(f'failed to read from disk cache: {err}') from err

    async def set(self, key: str, value: bytes) -> None:
        path = self.path_for(key)
        try:
            await aiofiles.os.makedirs(os.path.dirname(path), exist_ok=True)
            async with aiofiles.open(path, 'wb') as f:
                await f.write(value)
        except OSError as err:
            raise CacheError(f'failed to write to disk cache: {err}') from err

    async def contains(self, key: str) -> bool:
        return await aiofiles.os.path.isfile(self.path_for(key))

    async def remove(self, key: str) -> None:
        try:
            await aiofiles.os.remove(self.path_for(key))
        except FileNotFoundError:
            pass
        except OSError as err:
            raise CacheError(f'failed to remove from disk cache: {err}') from err

    async def clear(self) -> None:
        try:
            if await aiofiles.os.path.exists(self.root_dir):
                await aioshutil.rmtree(self.root_dir)
            await aiofiles.os.makedirs(self.root_dir, exist_ok=True)
        except OSError as err:
            raise CacheError(f'failed to clear disk cache: {err}') from err
