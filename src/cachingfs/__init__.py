"""cachingfs: Transparent caching layer for key-addressed storage adapters."""

__version__ = "0.1.0"

from cachingfs.cache import CacheAdapter
from cachingfs.compose import create_cache_adapter, from_config, open_adapter
from cachingfs.config import CacheConfig
from cachingfs.errors import (
    KeyNotFoundError,
    StorageError,
    StorageLockError,
    StoragePermissionError,
    UnsupportedOperationError,
)
from cachingfs.file import File
from cachingfs.storage import (
    Capability,
    CloudFilesAdapter,
    InMemoryAdapter,
    LocalAdapter,
    StorageAdapter,
)

__all__ = [
    "CacheAdapter",
    "CacheConfig",
    "Capability",
    "CloudFilesAdapter",
    "File",
    "InMemoryAdapter",
    "KeyNotFoundError",
    "LocalAdapter",
    "StorageAdapter",
    "StorageError",
    "StorageLockError",
    "StoragePermissionError",
    "UnsupportedOperationError",
    "create_cache_adapter",
    "from_config",
    "open_adapter",
    "__version__",
]
