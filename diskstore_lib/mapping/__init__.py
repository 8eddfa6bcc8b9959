"""Key to path mapping strategies for DiskStore."""
from __future__ import annotations
import os
from typing import Any

from diskstore_lib.errors import InvalidConfiguration
from .base import PathMapper, validate_key
from .direct import DirectMapper
from .hashed import MAX_LEVELS, HashDistributedMapper, key_hash
from .interfaces import PathMapperProtocol

_MAPPERS = {
    "direct": DirectMapper,
    "hashed": HashDistributedMapper,
}


def create_mapper(kind: str, root: str | os.PathLike[str], **options: Any) -> PathMapper:
    """Build a mapper by name (``direct`` or ``hashed``).

    Extra options are passed to the mapper constructor; `DirectMapper`
    takes none.
    """
    try:
        cls = _MAPPERS[kind]
    except KeyError:
        raise InvalidConfiguration(f"Unknown mapper {kind!r}; expected one of {sorted(_MAPPERS)}") from None
    if cls is DirectMapper:
        if options:
            raise InvalidConfiguration(f"DirectMapper takes no options, got {sorted(options)}")
        return DirectMapper(root)
    return cls(root, **options)


__all__ = [
    "PathMapper",
    "PathMapperProtocol",
    "DirectMapper",
    "HashDistributedMapper",
    "MAX_LEVELS",
    "create_mapper",
    "key_hash",
    "validate_key",
]
