import os

import aiofiles
import aiofiles.os

from contentresolver.errors import ContentIOError, NotFoundError
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import (
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FileContent,
)


class LocalSource(ContentSource):
    """Local file system source.

    Attributes
    ----------
    root : str
        Directory that logical paths are resolved against.
    """

    def __init__(self, root: str) -> None:
        self.root = os.path.abspath(root)

    async def fetch_file(self, path: str) -> FileContent:
        local_path = self._resolve(path)
        try:
            async with aiofiles.open(local_path, 'rb') as f:
                content = await f.read()
        except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as err:
            raise NotFoundError(path) from err
        except OSError as err:
            raise ContentIOError(f"failed to read '{local_path}': {err}") from err
        return FileContent(content, local_path)

    async def list_directory(self, path: str) -> DirectoryListing:
        local_path = self._resolve(path)
        try:
            names = await aiofiles.os.listdir(local_path)
        except (FileNotFoundError, NotADirectoryError) as err:
            raise NotFoundError(path) from err
        except OSError as err:
            raise ContentIOError(f"failed to list '{local_path}': {err}") from err
        prefix = path.strip('/')
        entries = []
        for name in sorted(names):
            if await aiofiles.os.path.isdir(os.path.join(local_path, name)):
                entry_type = EntryType.DIR
            else:
                entry_type = EntryType.FILE
            entry_path = f'{prefix}/{name}' if prefix else name
            entries.append(DirectoryEntry(name, entry_path, entry_type))
        return DirectoryListing(path, entries)

    async def file_exists(self, path: str) -> bool:
        try:
            local_path = self._resolve(path)
        except NotFoundError:
            return False
        return await aiofiles.os.path.isfile(local_path)

    def identifier(self) -> str:
        return f'file://{self.root}'

    def _resolve(self, path: str) -> str:
        local_path = os.path.normpath(os.path.join(self.root, path.lstrip('/')))
        if local_path != self.root and not local_path.startswith(self.root + os.sep):
            raise NotFoundError(path)
        return local_path
