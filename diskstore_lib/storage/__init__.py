"""Storage engine package for DiskStore."""
from __future__ import annotations
import os
from typing import Any, Optional

from diskstore_lib.errors import StoreIOError
from diskstore_lib.mapping import create_mapper
from .base import KeyValueStore
from .expiration import ExpirationStore
from .file_store import FileStore, write_with_expiration
from .interfaces import MetadataStoreProtocol, StoreProtocol
from .metadata import SidecarMetadataStore, XattrMetadataStore, detect_metadata_store, get_metadata_store
from .serializer import (
    EncryptedSerializer,
    JSONSerializer,
    PickleSerializer,
    Serializer,
    YAMLSerializer,
    get_serializer,
)


def create_store(
    root: str | os.PathLike[str],
    *,
    mapper: str = "direct",
    levels: Optional[int] = None,
    serializer: str = "pickle",
    metadata: str = "auto",
    **serializer_options: Any,
) -> FileStore:
    """Build a `FileStore` from plain option names.

    `levels` only applies to the ``hashed`` mapper. `serializer_options`
    (`key`, `password`, ...) are forwarded to the ``encrypted`` serializer.
    """
    mapper_options = {"levels": levels} if mapper == "hashed" and levels is not None else {}
    path_mapper = create_mapper(mapper, root, **mapper_options)
    value_serializer = get_serializer(serializer, **serializer_options)
    try:
        metadata_store = get_metadata_store(metadata, path_mapper.root)
    except OSError as exc:
        raise StoreIOError(f"Metadata store {metadata!r} is unusable under {path_mapper.root}: {exc}") from exc
    return FileStore(mapper=path_mapper, serializer=value_serializer, metadata=metadata_store)


__all__ = [
    "KeyValueStore",
    "StoreProtocol",
    "MetadataStoreProtocol",
    "FileStore",
    "ExpirationStore",
    "XattrMetadataStore",
    "SidecarMetadataStore",
    "detect_metadata_store",
    "get_metadata_store",
    "Serializer",
    "PickleSerializer",
    "JSONSerializer",
    "YAMLSerializer",
    "EncryptedSerializer",
    "get_serializer",
    "create_store",
    "write_with_expiration",
]
