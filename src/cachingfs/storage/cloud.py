"""Cloud object-store adapter backed by cloudfiles."""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, FrozenSet, Optional, Set

from cachingfs.errors import KeyNotFoundError
from cachingfs.storage.base import (
    Capability,
    DirectoryListing,
    StorageAdapter,
    listing_from_keys,
)
from cachingfs.utils import normalize_key

LAST_MODIFIED = "Last-Modified"


def parse_last_modified(value: Any) -> Optional[float]:
    """Convert a Last-Modified header value to POSIX seconds.

    Args:
        value: datetime, RFC 1123 / ISO 8601 string, or number

    Returns:
        POSIX timestamp, or None if value is empty or unparseable

    Examples:
        >>> parse_last_modified('Wed, 21 Oct 2015 07:28:00 GMT')
        1445412480.0
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = parsedate_to_datetime(str(value))
        except (TypeError, ValueError):
            try:
                dt = datetime.fromisoformat(str(value))
            except ValueError:
                return None

    # Handle timezone-naive datetimes
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp()


class CloudFilesAdapter(StorageAdapter):
    """Stores keys as objects below a cloud path (gs://, s3://, file://, ...).

    Examples:
        >>> adapter = CloudFilesAdapter('gs://bucket/prefix')
        >>> adapter.write('data.json', b'{}')
        >>> adapter.exists('data.json')
        True
    """

    def __init__(self, cloudpath: str):
        """Initialize cloud adapter.

        Args:
            cloudpath: Cloud path used as the root of all keys
        """
        self.cloudpath = cloudpath.rstrip("/")
        self._cf = None

    def _client(self):
        if self._cf is None:
            from cloudfiles import CloudFiles

            self._cf = CloudFiles(self.cloudpath)
        return self._cf

    def read(self, key: str) -> bytes:
        content = self._client().get(normalize_key(key))
        if content is None:
            raise KeyNotFoundError(key)
        return content

    def write(
        self, key: str, content: bytes, metadata: Optional[Dict[str, Any]] = None
    ) -> None:
        self._client().put(normalize_key(key), content)

    def exists(self, key: str) -> bool:
        return bool(self._client().exists(normalize_key(key)))

    def mtime(self, key: str) -> float:
        headers = self._client().head(normalize_key(key))
        if not headers:
            raise KeyNotFoundError(key)

        timestamp = parse_last_modified(headers.get(LAST_MODIFIED))
        if timestamp is None:
            raise KeyNotFoundError(key)
        return timestamp

    def delete(self, key: str) -> None:
        if not self.exists(key):
            raise KeyNotFoundError(key)
        self._client().delete(normalize_key(key))

    def rename(self, key: str, new_key: str) -> None:
        content = self.read(key)
        cf = self._client()
        cf.put(normalize_key(new_key), content)
        cf.delete(normalize_key(key))

    def capabilities(self) -> FrozenSet[Capability]:
        return frozenset({Capability.KEYS, Capability.LIST_DIRECTORY})

    def keys(self) -> Set[str]:
        return {normalize_key(path) for path in self._client().list(flat=False)}

    def list_directory(self, directory: str = "") -> DirectoryListing:
        prefix = normalize_key(directory)
        keys = {
            normalize_key(path)
            for path in self._client().list(prefix=prefix, flat=False)
        }
        return listing_from_keys(keys, directory)
