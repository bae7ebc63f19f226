"""Exceptions raised by storage adapters."""


class StorageError(Exception):
    """Base exception for storage adapter failures."""

    pass


class KeyNotFoundError(StorageError, KeyError):
    """Raised when a key does not exist in an adapter."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"Key not found: {self.key}"


class UnsupportedOperationError(StorageError):
    """Raised when an optional capability is used on an adapter lacking it."""

    pass


class StoragePermissionError(StorageError):
    """Raised when storage directory permissions are insufficient."""

    pass


class StorageLockError(StorageError):
    """Raised when unable to acquire a storage lock."""

    pass
