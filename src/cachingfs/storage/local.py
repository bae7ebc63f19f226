"""Local directory storage adapter."""

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Set, Union

from filelock import FileLock, Timeout

from cachingfs.errors import (
    KeyNotFoundError,
    StorageError,
    StorageLockError,
    StoragePermissionError,
)
from cachingfs.storage.base import (
    Capability,
    DirectoryListing,
    StorageAdapter,
    listing_from_keys,
)
from cachingfs.utils import md5_hexdigest, normalize_key

logger = logging.getLogger(__name__)

# Reserved for in-flight writes; user keys may not use it as a name prefix
TEMP_PREFIX = ".cachingfs-tmp-"


class LocalAdapter(StorageAdapter):
    """Stores each key as a file below a root directory.

    Writes go to a temporary file first and are then renamed into place. If
    ``lock_dir`` is given, writes to the same key from different processes are
    serialized with a file lock.

    Examples:
        >>> adapter = LocalAdapter('/tmp/store')
        >>> adapter.write('docs/readme.txt', b'hello')
        >>> adapter.keys()
        {'docs/readme.txt'}
    """

    def __init__(
        self,
        root: Union[str, Path],
        create: bool = True,
        lock_dir: Optional[Union[str, Path]] = None,
        lock_timeout: float = 30,
    ):
        """Initialize local adapter.

        Args:
            root: Root directory holding the stored files
            create: Create root directory if it does not exist
            lock_dir: Directory for per-key lock files (None disables locking)
            lock_timeout: Seconds to wait for a lock before failing
        """
        self.root = Path(root).expanduser().resolve()
        self.lock_dir = Path(lock_dir).expanduser() if lock_dir is not None else None
        self.lock_timeout = lock_timeout

        if create:
            self._mkdir(self.root)
        if self.lock_dir is not None:
            self._mkdir(self.lock_dir)

    @staticmethod
    def _mkdir(path: Path) -> None:
        try:
            path.mkdir(parents=True, exist_ok=True)
        except PermissionError as e:
            raise StoragePermissionError(
                f"Cannot create storage directory at {path}: {e}"
            ) from e
        except OSError as e:
            raise StorageError(f"Cannot access storage directory at {path}: {e}") from e

    def _path(self, key: str) -> Path:
        """Get filesystem path for key.

        Raises:
            ValueError: If key resolves outside the root directory or uses
                the reserved temporary file prefix
        """
        path = (self.root / normalize_key(key)).resolve()
        if path != self.root and self.root not in path.parents:
            raise ValueError(f"Key escapes storage root: {key}")
        if path.name.startswith(TEMP_PREFIX):
            raise ValueError(f"Key uses reserved prefix {TEMP_PREFIX!r}: {key}")
        return path

    def _existing_file(self, key: str) -> Path:
        path = self._path(key)
        if not path.is_file():
            raise KeyNotFoundError(key)
        return path

    def _lock_path(self, key: str) -> Path:
        return self.lock_dir / f"{md5_hexdigest(normalize_key(key))}.lock"

    def read(self, key: str) -> bytes:
        path = self._existing_file(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            raise KeyNotFoundError(key) from None
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

    def write(
        self, key: str, content: bytes, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        if self.lock_dir is None:
            self._write_unlocked(key, content)
            return

        try:
            with FileLock(self._lock_path(key), timeout=self.lock_timeout):
                self._write_unlocked(key, content)
        except Timeout as e:
            raise StorageLockError(
                f"Timeout acquiring lock for {key} after {self.lock_timeout} seconds"
            ) from e

    def _write_unlocked(self, key: str, content: bytes) -> None:
        path = self._path(key)
        temp_path = None

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                dir=path.parent, prefix=TEMP_PREFIX, delete=False
            ) as f:
                temp_path = Path(f.name)
                f.write(content)
            os.replace(temp_path, path)
        except PermissionError as e:
            self._cleanup(temp_path)
            raise StoragePermissionError(f"Cannot write to {path}: {e}") from e
        except OSError as e:
            self._cleanup(temp_path)
            logger.error(f"OS error writing {path}: {e}")
            raise StorageError(f"Cannot write {key}: {e}") from e

    @staticmethod
    def _cleanup(temp_path: Optional[Path]) -> None:
        if temp_path is not None and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as e:
                logger.warning(f"Failed to clean up temp file {temp_path}: {e}")

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def mtime(self, key: str) -> float:
        path = self._existing_file(key)
        try:
            return path.stat().st_mtime
        except FileNotFoundError:
            raise KeyNotFoundError(key) from None

    def delete(self, key: str) -> None:
        path = self._existing_file(key)
        try:
            path.unlink()
        except FileNotFoundError:
            raise KeyNotFoundError(key) from None
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot delete {path}: {e}") from e

    def rename(self, key: str, new_key: str) -> None:
        path = self._existing_file(key)
        new_path = self._path(new_key)
        try:
            new_path.parent.mkdir(parents=True, exist_ok=True)
            os.replace(path, new_path)
        except PermissionError as e:
            raise StoragePermissionError(
                f"Cannot rename {key} to {new_key}: {e}"
            ) from e
        except OSError as e:
            raise StorageError(f"Cannot rename {key} to {new_key}: {e}") from e

    def capabilities(self) -> FrozenSet[Capability]:
        return frozenset({Capability.KEYS, Capability.LIST_DIRECTORY})

    def keys(self) -> Set[str]:
        return {
            path.relative_to(self.root).as_posix()
            for path in self.root.rglob("*")
            if path.is_file() and not path.name.startswith(TEMP_PREFIX)
        }

    def list_directory(self, directory: str = "") -> DirectoryListing:
        listing = listing_from_keys(self.keys(), directory)

        # Empty directories hold no keys but are still part of the listing
        base = self._path(directory)
        if base.is_dir():
            disk_dirs = {
                path.relative_to(self.root).as_posix()
                for path in base.rglob("*")
                if path.is_dir()
            }
            listing["dirs"] = sorted(set(listing["dirs"]) | disk_dirs)
        return listing
