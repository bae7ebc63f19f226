"""File objects binding a key to the adapter that stores it."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cachingfs.storage.base import StorageAdapter


class File:
    """A single stored value addressed by key.

    Examples:
        >>> file = File('notes.txt', adapter)
        >>> file.set_content(b'hello')
        >>> file.content
        b'hello'
    """

    def __init__(self, key: str, filesystem: "StorageAdapter"):
        self.key = key
        self.filesystem = filesystem

    @property
    def name(self) -> str:
        return self.key.rsplit("/", 1)[-1]

    @property
    def content(self) -> bytes:
        return self.filesystem.read(self.key)

    def set_content(self, content: bytes) -> None:
        self.filesystem.write(self.key, content)

    def exists(self) -> bool:
        return self.filesystem.exists(self.key)

    def mtime(self) -> float:
        return self.filesystem.mtime(self.key)

    def __repr__(self) -> str:
        return f"File(key={self.key!r}, filesystem={type(self.filesystem).__name__})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, File):
            return NotImplemented
        return self.key == other.key and self.filesystem is other.filesystem

    def __hash__(self) -> int:
        return hash((self.key, id(self.filesystem)))
