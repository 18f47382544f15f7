from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from contentresolver.errors import ContentError
from contentresolver.utils.entry import DirectoryListing, FileContent


class ContentSource(ABC):
    """Abstract class for read-only content source."""

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator['ContentSource', None]:
        """Opens backend resources for the duration of the block.

        Yields
        -------
        ContentSource
            Class instance
        """
        yield self

    @abstractmethod
    async def fetch_file(self, path: str) -> FileContent:
        """Fetch file.

        Parameters
        ----------
        path : str
            Logical file path.

        Returns
        -------
        FileContent
            File bytes with provenance.

        Raises
        ------
        NotFoundError
            If the source has no file at `path`.
        ContentError
            For any other failure.
        """
        pass

    @abstractmethod
    async def list_directory(self, path: str) -> DirectoryListing:
        """List directory content.

        Parameters
        ----------
        path : str
            Logical directory path.

        Returns
        -------
        DirectoryListing
            Directory entries.

        Raises
        ------
        NotFoundError
            If the source has no directory at `path`.
        ContentError
            For any other failure.
        """
        pass

    @abstractmethod
    def identifier(self) -> str:
        """Human-readable label of the source."""
        pass

    async def file_exists(self, path: str) -> bool:
        """Check whether a file exists.

        Fetches the file and reports success; override with a cheaper check
        where the backend has one.

        Parameters
        ----------
        path : str
            Logical file path.

        Returns
        -------
        bool
            True if the file can be fetched.
        """
        try:
            await self.fetch_file(path)
        except ContentError:
            return False
        return True

    def __repr__(self) -> str:
        return f'<{type(self).__name__} {self.identifier()}>'
