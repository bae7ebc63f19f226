"""Construction of adapters and cache stacks."""

import logging
from pathlib import Path
from typing import Optional, Union

from cachingfs.cache import CacheAdapter
from cachingfs.config import CacheConfig
from cachingfs.storage import (
    CloudFilesAdapter,
    InMemoryAdapter,
    LocalAdapter,
    StorageAdapter,
)
from cachingfs.utils import is_cloud_path

logger = logging.getLogger(__name__)


def open_adapter(
    location: Union[str, Path],
    lock_dir: Optional[Union[str, Path]] = None,
    lock_timeout: float = 30,
) -> StorageAdapter:
    """Create the adapter matching a location.

    Args:
        location: Local directory or cloud path (gs://, s3://, ...)
        lock_dir: Lock directory for local adapters
        lock_timeout: Seconds to wait for a local write lock

    Returns:
        CloudFilesAdapter for cloud paths, LocalAdapter otherwise

    Examples:
        >>> open_adapter('gs://bucket/data')
        <cachingfs.storage.cloud.CloudFilesAdapter object at ...>
    """
    if is_cloud_path(location):
        return CloudFilesAdapter(str(location))
    return LocalAdapter(location, lock_dir=lock_dir, lock_timeout=lock_timeout)


def create_cache_adapter(
    source: StorageAdapter,
    cache: StorageAdapter,
    ttl: int = 0,
    serialization_store: Optional[StorageAdapter] = None,
) -> CacheAdapter:
    """Wrap source with a cache.

    Args:
        source: Authoritative adapter
        cache: Adapter holding cached copies
        ttl: Time to live of cached entries in seconds
        serialization_store: Store for serialized listings. If None, a volatile
            InMemoryAdapter is created.

    Returns:
        CacheAdapter
    """
    if serialization_store is None:
        serialization_store = InMemoryAdapter()
    return CacheAdapter(source, cache, serialization_store, ttl=ttl)


def from_config(config: CacheConfig) -> CacheAdapter:
    """Build a cache stack from configuration.

    Args:
        config: CacheConfig with at least ``source`` set

    Returns:
        CacheAdapter reading from config.source through config.cache_dir

    Raises:
        ValueError: If config.source is not set
    """
    if not config.source:
        raise ValueError("No source configured")

    source = open_adapter(config.source, config.lock_dir, config.lock_timeout)
    cache = LocalAdapter(
        config.cache_dir, lock_dir=config.lock_dir, lock_timeout=config.lock_timeout
    )
    serialization_store = None
    if config.serialization_dir is not None:
        serialization_store = LocalAdapter(config.serialization_dir)

    logger.debug(
        f"Caching {config.source} in {config.cache_dir} with TTL {config.ttl}s"
    )
    return create_cache_adapter(source, cache, config.ttl, serialization_store)
