import httpx
import pytest

from contentresolver import (
    EntryType,
    GitHubSource,
    InvalidStructureError,
    NetworkError,
    NotFoundError,
    RateLimitedError,
    SerializationError,
)


def make_source(handler, base_path: str = 'base/path', **kwargs) -> GitHubSource:
    return GitHubSource('owner', 'repo', 'main', base_path, transport=httpx.MockTransport(handler), **kwargs)


def test_join_path():
    source = GitHubSource('owner', 'repo', 'main', 'base/path/')

    assert source.join_path('file.txt') == 'base/path/file.txt'
    assert source.join_path('/file.txt') == 'base/path/file.txt'


def test_join_path_empty_base():
    source = GitHubSource('owner', 'repo', 'main', '')

    assert source.join_path('file.txt') == 'file.txt'
    assert source.join_path('/file.txt') == 'file.txt'


def test_urls_and_identifier():
    source = GitHubSource('owner', 'repo', 'dev', 'base/path')

    assert source.raw_url('a.txt') == 'https://raw.githubusercontent.com/owner/repo/dev/base/path/a.txt'
    assert source.api_url('d') == 'https://api.github.com/repos/owner/repo/contents/base/path/d?ref=dev'
    identifier = source.identifier()
    for part in ['owner', 'repo', 'dev', 'base/path']:
        assert part in identifier


@pytest.mark.asyncio
async def test_fetch_file():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, content=b'hello', headers={'ETag': 'W/"abc"'})

    content = await make_source(handler, token='secret').fetch_file('a.txt')

    assert content.content == b'hello'
    assert content.etag == 'W/"abc"'
    assert content.source_path == 'https://raw.githubusercontent.com/owner/repo/main/base/path/a.txt'
    assert requests[0].headers['Authorization'] == 'Bearer secret'
    assert requests[0].headers['User-Agent'].startswith('contentresolver/')


@pytest.mark.asyncio
@pytest.mark.parametrize('status, expected', [
    (404, NotFoundError),
    (403, RateLimitedError),
    (429, RateLimitedError),
    (500, InvalidStructureError),
])
async def test_status_mapping(status, expected):
    source = make_source(lambda request: httpx.Response(status, text='rate limit exceeded'))

    with pytest.raises(expected) as fetch_info:
        await source.fetch_file('a.txt')
    with pytest.raises(expected):
        await source.list_directory('d')
    if expected is RateLimitedError:
        assert fetch_info.value.message == 'rate limit exceeded'
    if expected is InvalidStructureError:
        assert fetch_info.value.message == 'Unexpected status 500: rate limit exceeded'


@pytest.mark.asyncio
async def test_transport_failure_is_network_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError('connection refused', request=request)

    with pytest.raises(NetworkError):
        await make_source(handler).fetch_file('a.txt')


@pytest.mark.asyncio
async def test_list_directory():
    payload = [
        {'name': 'x.md', 'path': 'base/path/d/x.md', 'type': 'file'},
        {'name': 'sub', 'path': 'base/path/d/sub', 'type': 'dir'},
        {'name': 'link', 'path': 'base/path/d/link', 'type': 'symlink'},
    ]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == '/repos/owner/repo/contents/base/path/d'
        assert request.url.params['ref'] == 'main'
        assert request.headers['Accept'] == 'application/vnd.github.v3+json'
        return httpx.Response(200, json=payload)

    listing = await make_source(handler).list_directory('d')

    assert listing.path == 'd'
    assert [(entry.name, entry.entry_type) for entry in listing.entries] == [
        ('x.md', EntryType.FILE),
        ('sub', EntryType.DIR),
        ('link', EntryType.FILE),
    ]


@pytest.mark.asyncio
async def test_list_directory_malformed_payloads():
    with pytest.raises(SerializationError):
        await make_source(lambda request: httpx.Response(200, content=b'not json')).list_directory('d')
    with pytest.raises(InvalidStructureError):
        await make_source(lambda request: httpx.Response(200, json={'type': 'file'})).list_directory('d')
    with pytest.raises(InvalidStructureError):
        await make_source(lambda request: httpx.Response(200, json=[{'name': 'x'}])).list_directory('d')


@pytest.mark.asyncio
async def test_connect_shares_client():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, content=b'ok')

    source = make_source(handler)
    async with source.connect():
        assert source.client is not None
        await source.fetch_file('a.txt')
        await source.fetch_file('b.txt')
    assert source.client is None
    assert len(calls) == 2
