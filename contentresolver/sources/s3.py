from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from contentresolver.errors import (
    ContentError,
    InvalidStructureError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
)
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import (
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FileContent,
)
from contentresolver.utils.s3 import AsyncS3Reader, error_code, join_key

NOT_FOUND_CODES = {'NoSuchKey', 'NoSuchBucket', 'NotFound', '404'}
RATE_LIMIT_CODES = {
    'AccessDenied', 'InvalidAccessKeyId', 'SignatureDoesNotMatch', 'ExpiredToken',
    'SlowDown', 'Throttling', 'ThrottlingException', 'RequestLimitExceeded', '403', '429',
}


class S3Source(ContentSource):
    """S3 bucket source.

    Attributes
    ----------
    bucket : str
        S3 bucket.
    prefix : str
        Key prefix that logical paths are resolved against.
    endpoint_url : str, optional
        Endpoint URL.
    aws_access_key_id : str, optional
        AWS access key ID
    aws_secret_access_key : str, optional
        AWS secret access key
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = '',
        endpoint_url: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None
    ) -> None:
        self.bucket = bucket
        self.prefix = prefix.strip('/')
        self.endpoint_url = endpoint_url
        self.aws_access_key_id = aws_access_key_id
        self.aws_secret_access_key = aws_secret_access_key
        self.client: Any = None

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator['S3Source', None]:
        """Opens a client shared by every call inside the block.

        Yields
        -------
        S3Source
            Class instance
        """
        async with self._new_client() as client:
            self.client = client
            try:
                yield self
            finally:
                self.client = None

    async def fetch_file(self, path: str) -> FileContent:
        key = join_key(self.prefix, path)
        async with self._client() as client:
            try:
                async with AsyncS3Reader(client, bucket=self.bucket, key=key) as reader:
                    content = await reader.read()
                    etag = reader.etag
            except (ClientError, BotoCoreError) as err:
                raise self._map_error(err, path) from err
        return FileContent(content, f's3://{self.bucket}/{key}', etag)

    async def list_directory(self, path: str) -> DirectoryListing:
        key_prefix = join_key(self.prefix, path)
        if key_prefix:
            key_prefix += '/'
        entries = []
        async with self._client() as client:
            paginator = client.get_paginator('list_objects_v2')
            pages = paginator.paginate(Bucket=self.bucket, Prefix=key_prefix, Delimiter='/',
                                       PaginationConfig={'PageSize': 1000})
            try:
                async for page in pages:
                    for item in page.get('CommonPrefixes', []):
                        name = item['Prefix'][len(key_prefix):].rstrip('/')
                        if name:
                            entries.append(DirectoryEntry(name, self._logical_path(item['Prefix']), EntryType.DIR))
                    for item in page.get('Contents', []):
                        name = item['Key'][len(key_prefix):]
                        if name:
                            entries.append(DirectoryEntry(name, self._logical_path(item['Key']), EntryType.FILE))
            except (ClientError, BotoCoreError) as err:
                raise self._map_error(err, path) from err
            except KeyError as err:
                raise InvalidStructureError(f'malformed listing page for {key_prefix!r}: missing {err}') from err
        if not entries:
            raise NotFoundError(path)
        return DirectoryListing(path, entries)

    async def file_exists(self, path: str) -> bool:
        async with self._client() as client:
            try:
                await client.head_object(Bucket=self.bucket, Key=join_key(self.prefix, path))
            except (ClientError, BotoCoreError):
                return False
        return True

    def identifier(self) -> str:
        return f's3://{self.bucket}/{self.prefix}'

    @asynccontextmanager
    async def _client(self) -> AsyncGenerator[Any, None]:
        if self.client is not None:
            yield self.client
        else:
            async with self._new_client() as client:
                yield client

    def _new_client(self) -> Any:
        return aioboto3.Session().client(
            's3', endpoint_url=self.endpoint_url,
            aws_access_key_id=self.aws_access_key_id,
            aws_secret_access_key=self.aws_secret_access_key
        )

    def _logical_path(self, key: str) -> str:
        key = key.rstrip('/')
        if self.prefix:
            return key[len(self.prefix) + 1:]
        return key

    @staticmethod
    def _map_error(err: Exception, path: str) -> ContentError:
        if isinstance(err, BotoCoreError):
            return NetworkError(str(err))
        code = error_code(err)
        if code in NOT_FOUND_CODES:
            return NotFoundError(path)
        if code in RATE_LIMIT_CODES:
            return RateLimitedError(str(err))
        return InvalidStructureError(str(err))
