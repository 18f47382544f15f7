import os
from typing import Any, Optional

import yaml

from contentresolver.cache import Cache, DiskCache, MemoryCache, NoCache
from contentresolver.errors import InvalidConfigError, SerializationError
from contentresolver.resolver import Resolver
from contentresolver.sources import (
    ContentSource,
    GitHubSource,
    InstrumentedSource,
    LocalSource,
    S3Source,
)

SOURCE_FIELDS = {
    'local': ({'root'}, set()),
    's3': ({'bucket'}, {'prefix', 'endpoint_url', 'aws_access_key_id', 'aws_secret_access_key'}),
    'github': ({'owner', 'repo'}, {'branch', 'base_path', 'token'}),
}
CACHE_FIELDS = {
    'disk': ({'root'}, set()),
    'memory': (set(), set()),
    'none': (set(), set()),
}
RESOLVER_FIELDS = {'sources', 'cache', 'propagate_cache_errors'}


def load_config(path: str) -> dict[str, Any]:
    """Reads YAML configuration file.

    Parameters
    ----------
    path : str
        path to configuration file.

    Returns
    -------
    dict[str, Any]
        Parsed configuration.
    """
    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise SerializationError(f"failed to parse '{path}': {err}") from err
    except OSError as err:
        raise InvalidConfigError(f"cannot read '{path}': {err}") from err
    if not isinstance(config, dict):
        raise InvalidConfigError(f"'{path}' must contain a mapping")
    return config


def build_source(config: dict[str, Any]) -> ContentSource:
    options = _check_fields(config, SOURCE_FIELDS, 'source', extra={'instrumented'})
    source_type = options.pop('type')
    instrumented = _flag(options.pop('instrumented', False), 'instrumented')
    source: ContentSource
    if source_type == 'local':
        source = LocalSource(os.path.expanduser(options['root']))
    elif source_type == 's3':
        source = S3Source(**options)
    else:
        source = GitHubSource(**options)
    if instrumented:
        source = InstrumentedSource(source)
    return source


def build_cache(config: Optional[dict[str, Any]]) -> Optional[Cache]:
    if config is None:
        return None
    options = _check_fields(config, CACHE_FIELDS, 'cache')
    cache_type = options.pop('type')
    if cache_type == 'disk':
        return DiskCache(options['root'])
    if cache_type == 'memory':
        return MemoryCache()
    return NoCache()


def build_resolver(config: dict[str, Any]) -> Resolver:
    if not isinstance(config, dict):
        raise InvalidConfigError('configuration must be a mapping')
    unknown = set(config) - RESOLVER_FIELDS
    if unknown:
        raise InvalidConfigError(f'unknown fields: {sorted(unknown)}')
    sources = config.get('sources')
    if not isinstance(sources, list) or not sources:
        raise InvalidConfigError("'sources' must be a non-empty list")
    return Resolver(
        [build_source(source) for source in sources],
        cache=build_cache(config.get('cache')),
        propagate_cache_errors=_flag(config.get('propagate_cache_errors', False), 'propagate_cache_errors'),
    )


def _flag(value: Any, name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidConfigError(f"'{name}' must be true or false, got {value!r}")
    return value


def _check_fields(
    config: Any,
    fields: dict[str, tuple[set[str], set[str]]],
    section: str,
    extra: Optional[set[str]] = None
) -> dict[str, Any]:
    if not isinstance(config, dict):
        raise InvalidConfigError(f'{section} entry must be a mapping, got {config!r}')
    entry_type = config.get('type')
    if entry_type not in fields:
        raise InvalidConfigError(f"unknown {section} type {entry_type!r}, expected one of {sorted(fields)}")
    required, optional = fields[entry_type]
    missing = required - set(config)
    if missing:
        raise InvalidConfigError(f"{section} '{entry_type}' is missing {sorted(missing)}")
    unknown = set(config) - required - optional - (extra or set()) - {'type'}
    if unknown:
        raise InvalidConfigError(f"{section} '{entry_type}' has unknown fields {sorted(unknown)}")
    return dict(config)
