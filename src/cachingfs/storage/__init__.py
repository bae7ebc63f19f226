"""Storage adapters for key-addressed backends.

This module provides the adapter capability contract and the concrete
backends (in-memory, local directory, cloud object store).
"""

from cachingfs.storage.base import (
    Capability,
    DirectoryListing,
    StorageAdapter,
    TimestampLookup,
    listing_from_keys,
    lookup_mtime,
)
from cachingfs.storage.cloud import CloudFilesAdapter
from cachingfs.storage.local import LocalAdapter
from cachingfs.storage.memory import InMemoryAdapter

__all__ = [
    "Capability",
    "CloudFilesAdapter",
    "DirectoryListing",
    "InMemoryAdapter",
    "LocalAdapter",
    "StorageAdapter",
    "TimestampLookup",
    "listing_from_keys",
    "lookup_mtime",
]
