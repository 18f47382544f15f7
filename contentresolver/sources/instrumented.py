import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, replace

from contentresolver.errors import ContentError, NotFoundError
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import DirectoryListing, FileContent

logger = logging.getLogger(__name__)


@dataclass
class SourceMetrics:
    fetch_requests: int = 0
    list_requests: int = 0
    successes: int = 0
    not_found: int = 0
    errors: int = 0
    total_seconds: float = 0.0


class InstrumentedSource(ContentSource):
    """Source decorator counting requests and outcomes of the wrapped source.

    Attributes
    ----------
    source : ContentSource
        Wrapped source.
    """

    def __init__(self, source: ContentSource) -> None:
        self.source = source
        self._metrics = SourceMetrics()

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator['InstrumentedSource', None]:
        async with self.source.connect():
            yield self

    async def fetch_file(self, path: str) -> FileContent:
        started = time.monotonic()
        self._metrics.fetch_requests += 1
        try:
            content = await self.source.fetch_file(path)
        except ContentError as err:
            self._record_failure('fetch_file', path, err)
            raise
        finally:
            self._metrics.total_seconds += time.monotonic() - started
        self._metrics.successes += 1
        return content

    async def list_directory(self, path: str) -> DirectoryListing:
        started = time.monotonic()
        self._metrics.list_requests += 1
        try:
            listing = await self.source.list_directory(path)
        except ContentError as err:
            self._record_failure('list_directory', path, err)
            raise
        finally:
            self._metrics.total_seconds += time.monotonic() - started
        self._metrics.successes += 1
        return listing

    def identifier(self) -> str:
        return f'instrumented({self.source.identifier()})'

    def metrics(self) -> SourceMetrics:
        """Returns a snapshot of the counters."""
        return replace(self._metrics)

    def _record_failure(self, operation: str, path: str, err: ContentError) -> None:
        if isinstance(err, NotFoundError):
            self._metrics.not_found += 1
        else:
            self._metrics.errors += 1
            logger.info('source %s %s failed path=%s kind=%s', self.source.identifier(), operation, path, err.kind)
