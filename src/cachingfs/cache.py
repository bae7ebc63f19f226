"""Cache adapter placing a fast store in front of an authoritative one."""

import logging
import time
from typing import Any, Callable, Dict, FrozenSet, Optional, Set

from cachingfs.errors import StorageError
from cachingfs.file import File
from cachingfs.serialization import JsonSerializer
from cachingfs.storage.base import (
    Capability,
    DirectoryListing,
    StorageAdapter,
    lookup_mtime,
)
from cachingfs.utils import KEYS_ENTRY, directory_entry_key

logger = logging.getLogger(__name__)


class CacheAdapter(StorageAdapter):
    """Serves reads from a cache adapter while the cached copy is fresh.

    The source adapter is authoritative: ``exists``, ``mtime`` and
    ``checksum`` are always answered by it, and writes reach it before the
    cache. Results of ``keys`` and ``list_directory`` are serialized into a
    separate store and reused until they are older than the TTL.

    The adapter itself is a StorageAdapter, so caches can be stacked.

    Examples:
        >>> adapter = CacheAdapter(
        ...     source=LocalAdapter('/data'),
        ...     cache=InMemoryAdapter(),
        ...     serialization_store=InMemoryAdapter(),
        ...     ttl=60,
        ... )
        >>> adapter.read('report.csv')
    """

    def __init__(
        self,
        source: StorageAdapter,
        cache: StorageAdapter,
        serialization_store: StorageAdapter,
        ttl: int = 0,
        serializer: Optional[JsonSerializer] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache adapter.

        Args:
            source: Authoritative adapter that is cached
            cache: Adapter holding cached copies of source values
            serialization_store: Adapter holding serialized listing results
            ttl: Time to live of cached entries in seconds
            serializer: Serializer for listing results (JSON if None)
            clock: Function returning the current POSIX time
        """
        self.source = source
        self.cache = cache
        self.serialization_store = serialization_store
        self.ttl = ttl
        self.serializer = serializer or JsonSerializer()
        self._clock = clock

    @property
    def ttl(self) -> int:
        return self._ttl

    @ttl.setter
    def ttl(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"TTL must be non-negative, got {value}")
        self._ttl = value

    # =========================================================================
    # Read / write path
    # =========================================================================

    def read(self, key: str) -> bytes:
        if self.needs_reload(key):
            logger.debug(f"Reloading {key} from source")
            content = self.source.read(key)
            try:
                self.cache.write(key, content)
            except StorageError as e:
                logger.warning(f"Cache refresh failed for {key}: {e}")
            return content

        logger.debug(f"Cache hit for {key}")
        return self.cache.read(key)

    def write(
        self, key: str, content: bytes, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        if metadata:
            logger.debug(f"Dropping metadata for {key}: not supported by cache layer")

        self.source.write(key, content)
        try:
            self.cache.write(key, content)
        except StorageError as e:
            # Next staleness check against the source repairs the entry
            logger.warning(f"Cache write failed for {key}: {e}")

    def delete(self, key: str) -> None:
        self.source.delete(key)
        try:
            self.cache.delete(key)
        except StorageError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    def rename(self, key: str, new_key: str) -> None:
        self.source.rename(key, new_key)
        self.cache.rename(key, new_key)

    # =========================================================================
    # Pass-through to source
    # =========================================================================

    def exists(self, key: str) -> bool:
        return self.source.exists(key)

    def mtime(self, key: str) -> float:
        return self.source.mtime(key)

    def checksum(self, key: str) -> str:
        return self.source.checksum(key)

    def supports_metadata(self) -> bool:
        return False

    def get(self, key: str, filesystem: StorageAdapter) -> File:
        if self.source.supports(Capability.GET):
            return self.source.get(key, filesystem)
        return File(key, filesystem)

    # =========================================================================
    # Listing caches
    # =========================================================================

    def capabilities(self) -> FrozenSet[Capability]:
        mirrored = self.source.capabilities() & {
            Capability.KEYS,
            Capability.LIST_DIRECTORY,
        }
        return frozenset(mirrored | {Capability.GET})

    def keys(self) -> Set[str]:
        if not self.source.supports(Capability.KEYS):
            return set()

        if self.needs_rebuild(KEYS_ENTRY):
            logger.debug("Rebuilding key listing from source")
            keys = set(self.source.keys())
            self.serialization_store.write(KEYS_ENTRY, self.serializer.dumps(keys))
            return keys

        return set(self.serializer.loads(self.serialization_store.read(KEYS_ENTRY)))

    def list_directory(self, directory: str = "") -> Optional[DirectoryListing]:
        if not self.source.supports(Capability.LIST_DIRECTORY):
            return None

        entry_key = directory_entry_key(directory)
        if self.needs_rebuild(entry_key):
            logger.debug(f"Rebuilding listing of '{directory}' from source")
            listing = self.source.list_directory(directory)
            self.serialization_store.write(entry_key, self.serializer.dumps(listing))
            return listing

        return self.serializer.loads(self.serialization_store.read(entry_key))

    # =========================================================================
    # Staleness decisions
    # =========================================================================

    def needs_reload(self, key: str) -> bool:
        """Check whether the cached copy of key must be reloaded from source.

        Only timestamps are compared. While the cached entry is younger than
        the TTL it is stale iff the source was modified after it; once older
        than the TTL it is trusted. A timestamp that cannot be found on either
        side means the cached entry is trusted.

        Args:
            key: Key to check

        Returns:
            True if the cache has no entry or the source is newer
        """
        if not self.cache.exists(key):
            return True

        cache_time = lookup_mtime(self.cache, key)
        if not cache_time.available:
            return False

        if self._clock() - self.ttl < cache_time.value:
            source_time = lookup_mtime(self.source, key)
            if not source_time.available:
                return False
            return cache_time.value < source_time.value

        return False

    def needs_rebuild(self, entry_key: str) -> bool:
        """Check whether a serialized listing must be rebuilt.

        Args:
            entry_key: Key of the entry in the serialization store

        Returns:
            True if the entry is missing or older than the TTL
        """
        if not self.serialization_store.exists(entry_key):
            return True

        entry_time = lookup_mtime(self.serialization_store, entry_key)
        if not entry_time.available:
            return False
        return self._clock() - self.ttl > entry_time.value
