"""Mapper storing every key as a file directly below the root."""
from __future__ import annotations
from pathlib import Path

from .base import PathMapper, validate_key


class DirectMapper(PathMapper):
    """Map keys straight to file names, e.g. ``foo`` -> ``<root>/foo``.

    Keys containing path separators are rejected with `InvalidKey` rather
    than being passed through as relative paths.
    """

    def resolve(self, key: str) -> Path:
        return self._root / validate_key(key)
