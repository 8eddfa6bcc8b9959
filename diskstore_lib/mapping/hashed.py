"""Mapper spreading keys over nested, hash-named directories.

Large key populations in a single directory degrade lookups on many
filesystems. This mapper hashes the key, reverses the hex digest, pads it
and cuts it into two-digit segments, one directory per nesting level.
With two levels the key ``foo`` ends up at ``<root>/xx/yy/foo``.
"""
from __future__ import annotations
import hashlib
import os
from pathlib import Path
from typing import Callable, Optional

from diskstore_lib.errors import DirectoryCreationError, InvalidConfiguration
from .base import PathMapper, validate_key

SPLIT_PER_LEVEL = 2
HASH_DIGITS = 16
MAX_LEVELS = HASH_DIGITS // SPLIT_PER_LEVEL
DEFAULT_LEVELS = 2


def key_hash(key: str) -> str:
    """Stable 64-bit hash of `key` as 16 lowercase hex digits."""
    return hashlib.blake2b(key.encode("utf-8"), digest_size=HASH_DIGITS // 2).hexdigest()


class HashDistributedMapper(PathMapper):
    """Distribute keys across `levels` nested directories.

    Parameters
    - root: directory scoping the store.
    - levels: nesting depth, ``1..MAX_LEVELS`` (defaults to 2).
    - hash_func: optional replacement for `key_hash`. It must return hex
      digits and be stable across processes sharing the store.
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        levels: int = DEFAULT_LEVELS,
        hash_func: Optional[Callable[[str], str]] = None,
    ) -> None:
        if not isinstance(levels, int) or isinstance(levels, bool):
            raise InvalidConfiguration(f"levels must be an integer, got {levels!r}")
        if levels > MAX_LEVELS:
            raise InvalidConfiguration(f"Maximum number of levels is {MAX_LEVELS}")
        if levels < 1:
            raise InvalidConfiguration("levels must be at least 1")
        super().__init__(root)
        self.levels = levels
        self.hash_func = hash_func or key_hash
        self._padding = levels * SPLIT_PER_LEVEL
        self._splits = [(n * SPLIT_PER_LEVEL, (n + 1) * SPLIT_PER_LEVEL) for n in range(levels)]

    def segments(self, key: str) -> list[str]:
        """Return the directory names, outermost first, used for `key`."""
        digits = self.hash_func(key)[::-1].ljust(self._padding, "0")
        return [digits[start:end] for start, end in self._splits]

    def resolve(self, key: str) -> Path:
        validate_key(key)
        parent = self._root.joinpath(*self.segments(key))
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreationError(
                f"Cannot create directory {parent} for key {key!r}: {exc}", key=key, path=parent
            ) from exc
        return parent / key

    def __repr__(self) -> str:
        return f"HashDistributedMapper(root={str(self._root)!r}, levels={self.levels})"
