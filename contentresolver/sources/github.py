from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx

from contentresolver.errors import (
    ContentError,
    InvalidStructureError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    SerializationError,
)
from contentresolver.sources.source import ContentSource
from contentresolver.utils.entry import (
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FileContent,
)

RAW_URL = 'https://raw.githubusercontent.com'
API_URL = 'https://api.github.com'
USER_AGENT = 'contentresolver/0.1'


class GitHubSource(ContentSource):
    """GitHub repository source.

    Files are downloaded from raw.githubusercontent.com, directory listings
    come from the REST contents API.

    Attributes
    ----------
    owner : str
        Repository owner (user or organization).
    repo : str
        Repository name.
    branch : str
        Branch or ref to fetch from.
    base_path : str
        Base path inside the repository, empty for the root.
    token : str, optional
        API token sent as bearer authorization.
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        branch: str = 'main',
        base_path: str = '',
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.base_path = base_path
        self.token = token
        self.transport = transport
        self.client: Optional[httpx.AsyncClient] = None

    @asynccontextmanager
    async def connect(self) -> AsyncGenerator['GitHubSource', None]:
        """Opens an HTTP client shared by every call inside the block.

        Yields
        -------
        GitHubSource
            Class instance
        """
        async with self._new_client() as client:
            self.client = client
            try:
                yield self
            finally:
                self.client = None

    async def fetch_file(self, path: str) -> FileContent:
        url = self.raw_url(path)
        response = await self._get(url)
        if response.status_code == 200:
            return FileContent(response.content, url, response.headers.get('etag'))
        raise self._map_status(response, path)

    async def list_directory(self, path: str) -> DirectoryListing:
        response = await self._get(self.api_url(path), headers={'Accept': 'application/vnd.github.v3+json'})
        if response.status_code != 200:
            raise self._map_status(response, path)
        try:
            payload = response.json()
        except ValueError as err:
            raise SerializationError(f'failed to decode listing of {path!r}: {err}') from err
        if not isinstance(payload, list):
            raise InvalidStructureError(f'expected a list of entries for {path!r}, got {type(payload).__name__}')
        entries = []
        for item in payload:
            try:
                name, item_path, item_type = item['name'], item['path'], item['type']
            except (KeyError, TypeError) as err:
                raise InvalidStructureError(f'malformed entry in listing of {path!r}: {item!r}') from err
            entry_type = EntryType.DIR if item_type == 'dir' else EntryType.FILE
            entries.append(DirectoryEntry(name, item_path, entry_type))
        return DirectoryListing(path, entries)

    def identifier(self) -> str:
        return f'github://{self.owner}/{self.repo}/{self.branch}/{self.base_path}'

    def raw_url(self, path: str) -> str:
        return f'{RAW_URL}/{self.owner}/{self.repo}/{self.branch}/{self.join_path(path)}'

    def api_url(self, path: str) -> str:
        return f'{API_URL}/repos/{self.owner}/{self.repo}/contents/{self.join_path(path)}?ref={self.branch}'

    def join_path(self, path: str) -> str:
        path = path.lstrip('/')
        if not self.base_path:
            return path
        return f"{self.base_path.rstrip('/')}/{path}"

    async def _get(self, url: str, headers: Optional[dict[str, str]] = None) -> httpx.Response:
        try:
            if self.client is not None:
                return await self.client.get(url, headers=headers)
            async with self._new_client() as client:
                return await client.get(url, headers=headers)
        except httpx.HTTPError as err:
            raise NetworkError(f'{url}: {err}') from err

    def _new_client(self) -> httpx.AsyncClient:
        headers = {'User-Agent': USER_AGENT}
        if self.token:
            headers['Authorization'] = f'Bearer {self.token}'
        kwargs: dict[str, Any] = {'headers': headers, 'follow_redirects': True}
        if self.transport is not None:
            kwargs['transport'] = self.transport
        return httpx.AsyncClient(**kwargs)

    @staticmethod
    def _map_status(response: httpx.Response, path: str) -> ContentError:
        if response.status_code == 404:
            return NotFoundError(path)
        if response.status_code in (403, 429):
            return RateLimitedError(response.text or 'GitHub API rate limit exceeded')
        return InvalidStructureError(f'Unexpected status {response.status_code}: {response.text}')
