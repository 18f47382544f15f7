import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Optional

import aiofiles
import aiofiles.os
import asyncio_pool
from tqdm.auto import tqdm

from contentresolver.errors import ContentError, InvalidConfigError
from contentresolver.resolver import Resolver
from contentresolver.utils.entry import DirectoryEntry, EntryType

logger = logging.getLogger(__name__)


class CLI:
    """Command line actions over a resolver.

    Attributes
    ----------
    resolver : Resolver
        Resolver to query.
    """

    def __init__(self, resolver: Resolver):
        self.resolver = resolver

    async def fetch(self, path: str, output: Optional[str] = None) -> int:
        content = await self.resolver.fetch_file(path)
        if output is None:
            sys.stdout.buffer.write(content.content)
            sys.stdout.flush()
        else:
            async with aiofiles.open(output, 'wb') as f:
                await f.write(content.content)
        logger.info('fetched %s from %s (%d bytes)', path, content.source_path, len(content.content))
        return len(content.content)

    async def ls(self, path: str, merged: bool = False, as_json: bool = False) -> list[DirectoryEntry]:
        if merged:
            listing = await self.resolver.list_directory_merged(path)
        else:
            listing = await self.resolver.list_directory(path)
        if as_json:
            print(json.dumps(listing.to_dict(), indent=2))
        else:
            for entry in listing.entries:
                print(f'{entry.entry_type.value}\t{entry.path}')
        return listing.entries

    async def exists(self, path: str) -> bool:
        result = await self.resolver.file_exists(path)
        print('true' if result else 'false')
        return result

    async def download(
        self,
        path: str,
        local_path: str,
        num_workers: int = 16
    ) -> list[str]:
        """Download logical directory tree.

        Parameters
        ----------
        path : str
            Logical directory path.
        local_path : str
            Local directory path.
        num_workers : int, default=16
            Max workers.

        Returns
        -------
        list[str]
            Error files.
        """
        path = path.strip('/')
        files = await self._walk(path)
        files_pbar = tqdm(total=len(files), desc='Files')
        bytes_pbar = tqdm(total=0, desc='Bytes')
        futures = []
        async with asyncio_pool.AioPool(size=num_workers) as pool:
            for file in files:
                destination_path = os.path.join(local_path, self._relative(file.path, path))
                future = await pool.spawn(self._download_file(file.path, destination_path, files_pbar, bytes_pbar))
                futures.append((file.path, future))
        files_pbar.close()
        bytes_pbar.close()
        return [file_path for file_path, future in futures if not future.result()]

    async def clear_cache(self) -> None:
        cache = self.resolver.cache()
        if cache is None:
            raise InvalidConfigError('no cache configured')
        await cache.clear()

    async def _walk(self, path: str) -> list[DirectoryEntry]:
        result = []
        listing = await self.resolver.list_directory(path)
        for entry in listing.entries:
            if entry.entry_type == EntryType.DIR:
                result += await self._walk(entry.path)
            else:
                result.append(entry)
        return result

    async def _download_file(
        self,
        source_path: str,
        destination_path: str,
        files_pbar: tqdm,
        bytes_pbar: tqdm
    ) -> bool:
        try:
            content = await self.resolver.fetch_file(source_path)
            await aiofiles.os.makedirs(os.path.dirname(destination_path) or '.', exist_ok=True)
            async with aiofiles.open(destination_path, 'wb') as dst_file:
                await dst_file.write(content.content)
        except (ContentError, OSError) as err:
            logger.error('failed to download %s: %s', source_path, err)
            files_pbar.update(1)
            return False
        bytes_pbar.total += len(content.content)
        bytes_pbar.update(len(content.content))
        files_pbar.update(1)
        return True

    @staticmethod
    def _relative(entry_path: str, root: str) -> str:
        entry_path = entry_path.strip('/')
        if root and entry_path.startswith(root + '/'):
            return entry_path[len(root) + 1:]
        return entry_path


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='contentresolver',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='to see action help message:\n  contentresolver fetch -h\n  contentresolver download -h'
    )
    parser.add_argument('--config', required=True, type=str, help='path to configuration file')
    parser.add_argument('--verbose', action='store_true', help='log resolution details')
    subparsers = parser.add_subparsers(dest='action')
    subparsers.required = True
    fetch_parser = subparsers.add_parser('fetch', help='print or save a file')
    fetch_parser.add_argument('path', type=str, help='logical file path')
    fetch_parser.add_argument('--output', type=str, default=None, help='output file path')
    ls_parser = subparsers.add_parser('ls', help='list a directory')
    ls_parser.add_argument('path', type=str, help='logical directory path')
    ls_parser.add_argument('--merged', action='store_true', help='merge listings of every source')
    ls_parser.add_argument('--json', action='store_true', dest='as_json', help='print JSON')
    exists_parser = subparsers.add_parser('exists', help='check that a file exists')
    exists_parser.add_argument('path', type=str, help='logical file path')
    download_parser = subparsers.add_parser('download', help='download a directory tree')
    download_parser.add_argument('path', type=str, help='logical directory path')
    download_parser.add_argument('--local_path', required=True, type=str, help='local folder path')
    download_parser.add_argument('--workers', type=int, default=16, help='max workers')
    subparsers.add_parser('clear-cache', help='clear the configured cache')
    return parser


async def run(args: argparse.Namespace) -> int:
    resolver = Resolver.from_yaml(args.config)
    cli = CLI(resolver)
    async with resolver.connect():
        if args.action == 'fetch':
            await cli.fetch(args.path, args.output)
        elif args.action == 'ls':
            await cli.ls(args.path, merged=args.merged, as_json=args.as_json)
        elif args.action == 'exists':
            return 0 if await cli.exists(args.path) else 1
        elif args.action == 'download':
            error_files = await cli.download(args.path, args.local_path, num_workers=args.workers)
            print(f'Error files: {error_files}')
            return 1 if error_files else 0
        elif args.action == 'clear-cache':
            await cli.clear_cache()
        else:
            raise ValueError(f"invalid action: '{args.action}'")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    try:
        return asyncio.run(run(args))
    except ContentError as err:
        print(f'error: {err}', file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
