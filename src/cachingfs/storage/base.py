"""Storage adapter capability contract.

Every backend (local directory, cloud bucket, in-memory map, and the caching
layer itself) implements :class:`StorageAdapter`. Optional operations are
declared through :meth:`StorageAdapter.capabilities` rather than discovered by
inspecting the object.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, List, Optional, Set

from typing_extensions import TypedDict

from cachingfs.errors import KeyNotFoundError, UnsupportedOperationError
from cachingfs.utils import md5_hexdigest

if TYPE_CHECKING:
    from cachingfs.file import File


class Capability(str, Enum):
    """Optional operations an adapter may support."""

    KEYS = "keys"
    LIST_DIRECTORY = "list_directory"
    GET = "get"


class DirectoryListing(TypedDict):
    """Result of listing a directory."""

    keys: List[str]  # Keys of files under the directory (recursive)
    dirs: List[str]  # Keys of directories under the directory (recursive)


@dataclass(frozen=True)
class TimestampLookup:
    """Outcome of asking an adapter for a key's modification time.

    Attributes:
        key: Key that was looked up
        value: Modification time in POSIX seconds, or None if unavailable
    """

    key: str
    value: Optional[float] = None

    @classmethod
    def found(cls, key: str, value: float) -> "TimestampLookup":
        return cls(key, float(value))

    @classmethod
    def not_found(cls, key: str) -> "TimestampLookup":
        return cls(key, None)

    @property
    def available(self) -> bool:
        return self.value is not None


def lookup_mtime(adapter: "StorageAdapter", key: str) -> TimestampLookup:
    """Look up a modification time without raising for missing keys.

    Only the not-found condition is converted; any other adapter failure
    propagates to the caller.

    Args:
        adapter: Adapter to query
        key: Key to look up

    Returns:
        TimestampLookup that is either found or not_found
    """
    try:
        return TimestampLookup.found(key, adapter.mtime(key))
    except KeyNotFoundError:
        return TimestampLookup.not_found(key)


class StorageAdapter(ABC):
    """Abstract key-addressed storage backend.

    Required operations must be implemented by every backend. Optional
    operations (``keys``, ``list_directory``, ``get``) are only available when
    the matching :class:`Capability` is returned by :meth:`capabilities`.
    """

    @abstractmethod
    def read(self, key: str) -> bytes:
        """Read the content stored under key.

        Raises:
            KeyNotFoundError: If the key does not exist
        """

    @abstractmethod
    def write(
        self, key: str, content: bytes, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        """Write content under key, replacing any existing value."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Check if key exists."""

    @abstractmethod
    def mtime(self, key: str) -> float:
        """Get last modification time of key in POSIX seconds.

        Raises:
            KeyNotFoundError: If the key does not exist or has no timestamp
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete key.

        Raises:
            KeyNotFoundError: If the key does not exist
        """

    @abstractmethod
    def rename(self, key: str, new_key: str) -> None:
        """Rename key to new_key.

        Raises:
            KeyNotFoundError: If the key does not exist
        """

    def checksum(self, key: str) -> str:
        """Get MD5 checksum of the content stored under key."""
        return md5_hexdigest(self.read(key))

    def supports_metadata(self) -> bool:
        return False

    # =========================================================================
    # Optional capabilities
    # =========================================================================

    def capabilities(self) -> FrozenSet[Capability]:
        """Get the optional capabilities this adapter implements."""
        return frozenset()

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities()

    def keys(self) -> Set[str]:
        """Get all keys stored in the adapter."""
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support key enumeration"
        )

    def list_directory(self, directory: str = "") -> DirectoryListing:
        """List files and directories under directory."""
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not support directory listing"
        )

    def get(self, key: str, filesystem: "StorageAdapter") -> "File":
        """Create a File bound to key and filesystem."""
        raise UnsupportedOperationError(
            f"{type(self).__name__} does not create file objects"
        )


def listing_from_keys(keys: Set[str], directory: str = "") -> DirectoryListing:
    """Build a directory listing from a flat set of '/'-separated keys.

    Args:
        keys: All keys in the adapter
        directory: Directory to list ('' for the root)

    Returns:
        DirectoryListing with sorted keys and dirs under directory
    """
    prefix = f"{directory.strip('/')}/" if directory.strip("/") else ""
    files: Set[str] = set()
    dirs: Set[str] = set()

    for key in keys:
        if not key.startswith(prefix):
            continue
        files.add(key)
        parts = key.split("/")[:-1]
        for depth in range(1, len(parts) + 1):
            parent = "/".join(parts[:depth])
            if parent.startswith(prefix) and parent != prefix.rstrip("/"):
                dirs.add(parent)

    return {"keys": sorted(files), "dirs": sorted(dirs)}
