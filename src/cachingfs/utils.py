"""Utility functions for cachingfs."""

import hashlib
from pathlib import Path
from typing import Union

# Synthetic keys used in the serialization store
KEYS_ENTRY = "keys.cache"
DIRECTORY_ENTRY_PREFIX = "dir-"
ENTRY_SUFFIX = ".cache"


def is_cloud_path(path: Union[str, Path]) -> bool:
    """Check if a path is a cloud storage path.

    Args:
        path: Path to check

    Returns:
        True if path starts with cloud storage protocol

    Examples:
        >>> is_cloud_path('s3://bucket/data')
        True
        >>> is_cloud_path('/local/path/data')
        False
        >>> is_cloud_path('gs://bucket/data')
        True
    """
    path_str = str(path)
    cloud_prefixes = (
        "s3://",
        "gs://",
        "gcs://",
        "az://",
        "azure://",
        "https://",
        "http://",
        "file://",
    )
    return path_str.startswith(cloud_prefixes)


def normalize_key(key: str) -> str:
    """Normalize a key to a forward-slash separated relative path.

    Examples:
        >>> normalize_key('/dir/file.txt/')
        'dir/file.txt'
        >>> normalize_key('dir\\\\file.txt')
        'dir/file.txt'
    """
    return key.replace("\\", "/").strip("/")


def md5_hexdigest(data: Union[bytes, str]) -> str:
    """Compute the MD5 hex digest of bytes or a UTF-8 string."""
    if isinstance(data, str):
        data = data.encode("utf-8")
    return hashlib.md5(data).hexdigest()


def directory_entry_key(directory: str) -> str:
    """Get the serialization store key for a directory listing.

    The key is derived from a stable hash of the directory path, so the same
    path always maps to the same entry.

    Examples:
        >>> directory_entry_key('')
        'dir-d41d8cd98f00b204e9800998ecf8427e.cache'
    """
    return f"{DIRECTORY_ENTRY_PREFIX}{md5_hexdigest(directory)}{ENTRY_SUFFIX}"
