"""Exception hierarchy for DiskStore.

Every error raised by the mappers, the metadata stores and the file store
derives from `StoreError` so callers can catch the whole family at once.
Errors carry the offending `key` and/or `path` when they are known.
"""
from __future__ import annotations
from pathlib import Path
from typing import Optional


class StoreError(Exception):
    def __init__(self, message: str, *, key: Optional[str] = None, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.key = key
        self.path = path

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else self.__class__.__name__


class InvalidRoot(StoreError):
    """The root path exists but is not a directory, or cannot be created."""


class InvalidConfiguration(StoreError, ValueError):
    """Options out of range or unknown (mapper levels, serializer names, YAML config)."""


class InvalidKey(StoreError, ValueError):
    """Key cannot be used as a single path component below the root."""


class DirectoryCreationError(StoreError):
    """A directory required by a mapper could not be created."""


class NotFound(StoreError, KeyError):
    """Metadata was attached to a key whose content file does not exist."""


class CorruptEntry(StoreError):
    """Stored bytes exist but cannot be decoded by the configured serializer."""


class StoreIOError(StoreError):
    """Wraps lower level filesystem failures (permissions, disk full, ...)."""
