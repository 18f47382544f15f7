from contentresolver.cache.cache import Cache
from contentresolver.cache.disk import DiskCache
from contentresolver.cache.memory import MemoryCache
from contentresolver.cache.null import NoCache
