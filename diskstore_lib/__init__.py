"""DiskStore: a filesystem-backed key/value store with pluggable key to path mapping."""

from .errors import (
    CorruptEntry,
    DirectoryCreationError,
    InvalidConfiguration,
    InvalidKey,
    InvalidRoot,
    NotFound,
    StoreError,
    StoreIOError,
)
from .mapping import DirectMapper, HashDistributedMapper, PathMapper
from .storage import ExpirationStore, FileStore, create_store

__all__ = [
    "StoreError",
    "InvalidRoot",
    "InvalidConfiguration",
    "InvalidKey",
    "DirectoryCreationError",
    "NotFound",
    "CorruptEntry",
    "StoreIOError",
    "PathMapper",
    "DirectMapper",
    "HashDistributedMapper",
    "ExpirationStore",
    "FileStore",
    "create_store",
]
