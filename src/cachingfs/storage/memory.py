"""In-memory storage adapter."""

import time
from typing import Any, Callable, Dict, FrozenSet, Optional, Set, Tuple

from cachingfs.errors import KeyNotFoundError
from cachingfs.storage.base import (
    Capability,
    DirectoryListing,
    StorageAdapter,
    listing_from_keys,
)
from cachingfs.utils import normalize_key


class InMemoryAdapter(StorageAdapter):
    """Volatile adapter keeping content and modification times in a dict.

    Suitable for testing and as the default serialization store. Content is
    lost when the process exits.

    Examples:
        >>> adapter = InMemoryAdapter({'greeting.txt': b'hello'})
        >>> adapter.read('greeting.txt')
        b'hello'
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize in-memory adapter.

        Args:
            files: Initial content keyed by key
            clock: Function returning the current POSIX time, used as mtime
        """
        self._clock = clock
        self._files: Dict[str, Tuple[bytes, float]] = {}
        for key, content in (files or {}).items():
            self.write(key, content)

    def read(self, key: str) -> bytes:
        return self._entry(key)[0]

    def write(
        self, key: str, content: bytes, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._files[normalize_key(key)] = (bytes(content), self._clock())

    def exists(self, key: str) -> bool:
        return normalize_key(key) in self._files

    def mtime(self, key: str) -> float:
        return self._entry(key)[1]

    def delete(self, key: str) -> None:
        self._entry(key)
        del self._files[normalize_key(key)]

    def rename(self, key: str, new_key: str) -> None:
        content, mtime = self._entry(key)
        del self._files[normalize_key(key)]
        self._files[normalize_key(new_key)] = (content, mtime)

    def touch(self, key: str, mtime: float) -> None:
        """Set the modification time of an existing key."""
        content, _ = self._entry(key)
        self._files[normalize_key(key)] = (content, float(mtime))

    def capabilities(self) -> FrozenSet[Capability]:
        return frozenset({Capability.KEYS, Capability.LIST_DIRECTORY})

    def keys(self) -> Set[str]:
        return set(self._files)

    def list_directory(self, directory: str = "") -> DirectoryListing:
        return listing_from_keys(self.keys(), directory)

    def _entry(self, key: str) -> Tuple[bytes, float]:
        try:
            return self._files[normalize_key(key)]
        except KeyError:
            raise KeyNotFoundError(key) from None
