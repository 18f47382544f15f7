import asyncio
import hashlib
import os

import pytest

from contentresolver import (
    CacheError,
    DiskCache,
    InvalidConfigError,
    MemoryCache,
    MemorySource,
    NoCache,
    Resolver,
)


@pytest.fixture(params=['memory', 'disk'])
def cache(request, tmp_path):
    if request.param == 'memory':
        return MemoryCache()
    return DiskCache(str(tmp_path / 'cache'))


@pytest.mark.asyncio
async def test_cache_contract(cache):
    assert not await cache.contains('key')
    assert await cache.get('key') is None

    await cache.set('key', b'value')
    assert await cache.contains('key')
    assert await cache.get('key') == b'value'

    await cache.set('key', b'other')
    assert await cache.get('key') == b'other'

    await cache.remove('key')
    await cache.remove('key')
    assert not await cache.contains('key')
    assert await cache.get('key') is None

    await cache.set('key1', b'val1')
    await cache.set('key2', b'')
    assert await cache.get('key2') == b''
    await cache.clear()
    assert not await cache.contains('key1')
    assert not await cache.contains('key2')

    await cache.set('key3', b'after clear')
    assert await cache.get('key3') == b'after clear'


@pytest.mark.asyncio
async def test_cache_concurrent_access(cache):
    async def write_and_read(i: int) -> bytes:
        await cache.set(f'key{i % 10}', f'value{i % 10}'.encode())
        value = await cache.get(f'key{i % 10}')
        assert value is not None
        return value

    results = await asyncio.gather(*(write_and_read(i) for i in range(100)))

    assert results == [f'value{i % 10}'.encode() for i in range(100)]


@pytest.mark.asyncio
async def test_no_cache_discards_everything():
    cache = NoCache()

    await cache.set('key', b'value')

    assert await cache.get('key') is None
    assert not await cache.contains('key')
    await cache.remove('key')
    await cache.clear()


def test_disk_cache_path_layout(tmp_path):
    cache = DiskCache(str(tmp_path))
    digest = hashlib.sha256(b'file:a/b?.txt').hexdigest()

    path = cache.path_for('file:a/b?.txt')

    assert path == os.path.join(str(tmp_path), digest[:2], digest[2:])
    assert cache.path_for('file:a/b?.txt') == path
    assert cache.path_for('file:a/b.txt') != path


@pytest.mark.asyncio
async def test_disk_cache_survives_restart(tmp_path):
    root = str(tmp_path / 'cache')
    await DiskCache(root).set('file:file.txt', b'Test content')

    reopened = DiskCache(root)

    assert await reopened.contains('file:file.txt')
    assert await reopened.get('file:file.txt') == b'Test content'


@pytest.mark.asyncio
async def test_disk_cache_serves_resolver_after_restart(tmp_path):
    root = str(tmp_path / 'cache')
    resolver = Resolver([MemorySource({'file.txt': b'Test content'})], cache=DiskCache(root))
    await resolver.fetch_file('file.txt')

    restarted = Resolver([MemorySource()], cache=DiskCache(root))
    content = await restarted.fetch_file('file.txt')

    assert content.content == b'Test content'
    assert content.source_path == 'cache:file.txt'


@pytest.mark.asyncio
async def test_disk_cache_clear_recreates_root(tmp_path):
    root = tmp_path / 'cache'
    cache = DiskCache(str(root))
    await cache.set('key', b'value')

    await cache.clear()

    assert root.is_dir()
    assert list(root.iterdir()) == []


@pytest.mark.asyncio
async def test_disk_cache_read_fault(tmp_path):
    cache = DiskCache(str(tmp_path))
    os.makedirs(cache.path_for('key'))

    with pytest.raises(CacheError):
        await cache.get('key')


@pytest.mark.asyncio
async def test_disk_cache_write_fault(tmp_path):
    cache = DiskCache(str(tmp_path))
    os.makedirs(cache.path_for('key'))

    with pytest.raises(CacheError):
        await cache.set('key', b'value')


def test_disk_cache_root_must_be_directory(tmp_path):
    not_a_dir = tmp_path / 'file'
    not_a_dir.write_bytes(b'')

    with pytest.raises(InvalidConfigError):
        DiskCache(str(not_a_dir))


@pytest.mark.asyncio
async def test_memory_cache_size():
    cache = MemoryCache()
    assert await cache.size() == 0

    await cache.set('a', b'1')
    await cache.set('b', b'2')
    await cache.set('a', b'3')
    assert await cache.size() == 2

    await cache.remove('a')
    assert await cache.size() == 1
    await cache.clear()
    assert await cache.size() == 0
