import logging
from collections.abc import AsyncGenerator, Iterable
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any, Optional

from contentresolver.cache.cache import Cache
from contentresolver.errors import (
    CacheError,
    ContentError,
    InvalidConfigError,
    NotFoundError,
)
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import DirectoryEntry, DirectoryListing, FileContent

logger = logging.getLogger(__name__)


class Resolver:
    """Resolves logical paths against an ordered list of sources.

    Sources are consulted in the configured order and the first success
    wins. `NotFoundError` from a source moves on to the next one; any other
    error is remembered and raised only if no later source succeeds. Fetched
    files are optionally cached by path.

    Attributes
    ----------
    sources : Iterable[ContentSource]
        Sources in priority order.
    cache : Cache, optional
        Cache consulted before and populated after file fetches.
    propagate_cache_errors : bool, default=False
        Raise cache read faults instead of treating them as misses.
    """

    def __init__(
        self,
        sources: Iterable[ContentSource],
        cache: Optional[Cache] = None,
        propagate_cache_errors: bool = False
    ) -> None:
        sources = tuple(sources)
        for source in sources:
            if not isinstance(source, ContentSource):
                raise InvalidConfigError(f'not a content source: {source!r}')
        if cache is not None and not isinstance(cache, Cache):
            raise InvalidConfigError(f'not a cache: {cache!r}')
        self._sources = sources
        self._cache = cache
        self._propagate_cache_errors = propagate_cache_errors

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> 'Resolver':
        """Creates class instance from configuration mapping.

        Parameters
        ----------
        config : dict[str, Any]
            Configuration with 'sources' and optional 'cache' sections.

        Returns
        -------
        Resolver
            Class instance.
        """
        from contentresolver.config import build_resolver
        return build_resolver(config)

    @classmethod
    def from_yaml(cls, path: str) -> 'Resolver':
        """Creates class instance from configuration path.

        Parameters
        ----------
        path : str
            path to configuration file.

        Returns
        -------
        Resolver
            Class instance.
        """
        from contentresolver.config import load_config
        return cls.from_config(load_config(path))

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator['Resolver', None]:
        """Connects every source for the duration of the block.

        Yields
        -------
        Resolver
            Class instance
        """
        async with AsyncExitStack() as stack:
            for source in self._sources:
                await stack.enter_async_context(source.connect())
            yield self

    def sources(self) -> tuple[ContentSource, ...]:
        """Configured sources in priority order."""
        return self._sources

    def cache(self) -> Optional[Cache]:
        """Attached cache, None if caching is disabled."""
        return self._cache

    async def fetch_file(self, path: str) -> FileContent:
        """Fetch file from the first source that has it.

        Parameters
        ----------
        path : str
            Logical file path.

        Returns
        -------
        FileContent
            File content; served from the cache when possible.

        Raises
        ------
        NotFoundError
            If no source has the file and none failed otherwise.
        ContentError
            The last non-NotFound error if no source succeeded.
        """
        cache_key = f'file:{path}'
        if self._cache is not None:
            cached = await self._cache_get(self._cache, cache_key)
            if cached is not None:
                logger.debug('cache hit path=%s', path)
                return FileContent(cached, f'cache:{path}')
            logger.debug('cache miss path=%s', path)

        last_error: Optional[ContentError] = None
        for source in self._sources:
            try:
                content = await source.fetch_file(path)
            except NotFoundError:
                logger.debug('not found source=%s path=%s', source.identifier(), path)
                continue
            except ContentError as err:
                logger.warning('fetch failed source=%s path=%s: %s', source.identifier(), path, err)
                last_error = err
                continue
            logger.debug('fetched source=%s path=%s', source.identifier(), path)
            if self._cache is not None:
                await self._cache_set(self._cache, cache_key, content.content)
            return content

        if last_error is not None:
            raise last_error
        raise NotFoundError(path)

    async def list_directory(self, path: str) -> DirectoryListing:
        """List directory from the first source that has it.

        Parameters
        ----------
        path : str
            Logical directory path.

        Returns
        -------
        DirectoryListing
            Listing of the highest-priority source that has the directory.
        """
        last_error: Optional[ContentError] = None
        for source in self._sources:
            try:
                listing = await source.list_directory(path)
            except NotFoundError:
                continue
            except ContentError as err:
                logger.warning('list failed source=%s path=%s: %s', source.identifier(), path, err)
                last_error = err
                continue
            return listing

        if last_error is not None:
            raise last_error
        raise NotFoundError(path)

    async def list_directory_merged(self, path: str) -> DirectoryListing:
        """List directory across every source.

        Entries are sorted by path. Of several entries with one path the
        entry of the highest-priority source is kept. Errors of individual
        sources are ignored.

        Parameters
        ----------
        path : str
            Logical directory path.

        Returns
        -------
        DirectoryListing
            Merged listing.

        Raises
        ------
        NotFoundError
            If no source listed the directory.
        """
        entries: list[DirectoryEntry] = []
        found_any = False
        for source in self._sources:
            try:
                listing = await source.list_directory(path)
            except ContentError as err:
                logger.debug('merged list skipped source=%s path=%s: %s', source.identifier(), path, err)
                continue
            found_any = True
            entries.extend(listing.entries)

        if not found_any:
            raise NotFoundError(path)

        merged: list[DirectoryEntry] = []
        for entry in sorted(entries, key=lambda e: e.path):
            if merged and merged[-1].path == entry.path:
                continue
            merged.append(entry)
        return DirectoryListing(path, merged)

    async def file_exists(self, path: str) -> bool:
        """Check whether any source has a file.

        Sources are probed in order until one reports the file. Probe errors
        count as absence, so this never raises.

        Parameters
        ----------
        path : str
            Logical file path.

        Returns
        -------
        bool
            True if some source has the file.
        """
        for source in self._sources:
            try:
                if await source.file_exists(path):
                    return True
            except ContentError as err:
                logger.debug('exists probe failed source=%s path=%s: %s', source.identifier(), path, err)
        return False

    async def _cache_get(self, cache: Cache, key: str) -> Optional[bytes]:
        try:
            return await cache.get(key)
        except CacheError as err:
            if self._propagate_cache_errors:
                raise
            logger.warning('cache read failed key=%s, falling back to sources: %s', key, err)
            return None

    async def _cache_set(self, cache: Cache, key: str, value: bytes) -> None:
        try:
            await cache.set(key, value)
        except CacheError as err:
            logger.warning('cache write failed key=%s: %s', key, err)

    def __repr__(self) -> str:
        sources = ', '.join(source.identifier() for source in self._sources)
        return f'<Resolver [{sources}] cache={type(self._cache).__name__ if self._cache else None}>'
