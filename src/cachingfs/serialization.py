"""Serialization of aggregate listing results."""

from typing import Any

import orjson


def _default(obj: Any) -> Any:
    if isinstance(obj, (set, frozenset)):
        return sorted(obj)
    raise TypeError(f"Type is not serializable: {type(obj).__name__}")


class JsonSerializer:
    """Serializes key sets and directory listings as JSON bytes.

    Sets are written as sorted lists so identical sets always produce
    identical bytes.

    Examples:
        >>> serializer = JsonSerializer()
        >>> serializer.loads(serializer.dumps({'keys': ['a'], 'dirs': []}))
        {'keys': ['a'], 'dirs': []}
    """

    def dumps(self, value: Any) -> bytes:
        return orjson.dumps(value, default=_default)

    def loads(self, data: bytes) -> Any:
        return orjson.loads(data)
