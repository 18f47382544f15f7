from contextlib import AbstractAsyncContextManager
from typing import Any, Optional


class AsyncS3Reader(AbstractAsyncContextManager[Any]):
    """Async S3 object reader.

    Attributes
    ----------
    client : Any
        aioboto3 S3 client.
    bucket : str
        S3 bucket.
    key : str
        S3 object key.
    """

    def __init__(
        self,
        client: Any,
        bucket: str,
        key: str
    ):
        self.client = client
        self.bucket = bucket
        self.key = key
        self.etag: Optional[str] = None

    async def __aenter__(self) -> 'AsyncS3Reader':
        obj = await self.client.get_object(Bucket=self.bucket, Key=self.key)
        self.stream = obj['Body']
        self.etag = obj.get('ETag')
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stream.close()

    async def read(self, chunk: Optional[int] = None) -> bytes:
        if chunk is None:
            return await self.stream.read()
        return await self.stream.read(chunk)


def join_key(prefix: str, path: str) -> str:
    """Joins key prefix and logical path."""
    path = path.strip('/')
    prefix = prefix.strip('/')
    if not prefix:
        return path
    if not path:
        return prefix
    return f'{prefix}/{path}'


def error_code(err: Any) -> str:
    return str(err.response.get('Error', {}).get('Code', ''))
