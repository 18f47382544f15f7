from contentresolver.cache import Cache, DiskCache, MemoryCache, NoCache
from contentresolver.errors import (
    CacheError,
    ContentError,
    ContentIOError,
    InvalidConfigError,
    InvalidStructureError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    SerializationError,
)
from contentresolver.resolver import Resolver
from contentresolver.sources import (
    ContentSource,
    GitHubSource,
    InstrumentedSource,
    LocalSource,
    MemorySource,
    S3Source,
    SourceMetrics,
)
from contentresolver.utils.entry import (
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FileContent,
)
