from contentresolver.sources.github import GitHubSource
from contentresolver.sources.instrumented import InstrumentedSource, SourceMetrics
from contentresolver.sources.local import LocalSource
from contentresolver.sources.memory import MemorySource
from contentresolver.sources.s3 import S3Source
from contentresolver.sources.source import ContentSource
