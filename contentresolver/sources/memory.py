from typing import Optional

from contentresolver.errors import NotFoundError
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import DirectoryEntry, DirectoryListing, FileContent


class MemorySource(ContentSource):
    """In-memory source, mostly useful as a test double.

    Attributes
    ----------
    files : dict[str, bytes]
        File path to content.
    directories : dict[str, list[DirectoryEntry]]
        Directory path to entries.
    name : str
        Label used in the identifier.
    """

    def __init__(
        self,
        files: Optional[dict[str, bytes]] = None,
        directories: Optional[dict[str, list[DirectoryEntry]]] = None,
        name: str = 'memory'
    ) -> None:
        self.files = dict(files or {})
        self.directories = {path: list(entries) for path, entries in (directories or {}).items()}
        self.name = name

    def add_file(self, path: str, content: bytes) -> None:
        self.files[path] = content

    def add_directory(self, path: str, entries: list[DirectoryEntry]) -> None:
        self.directories[path] = list(entries)

    async def fetch_file(self, path: str) -> FileContent:
        if path not in self.files:
            raise NotFoundError(path)
        return FileContent(self.files[path], f'{self.identifier()}/{path}')

    async def list_directory(self, path: str) -> DirectoryListing:
        if path not in self.directories:
            raise NotFoundError(path)
        return DirectoryListing(path, list(self.directories[path]))

    async def file_exists(self, path: str) -> bool:
        return path in self.files

    def identifier(self) -> str:
        return f'memory://{self.name}'
