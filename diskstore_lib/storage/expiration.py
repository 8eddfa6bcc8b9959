"""Expiration tokens attached to stored entries.

The token (commonly a timestamp) is caller defined; this module only
persists it next to the content file located by the same mapper. Deciding
whether an entry has expired is up to the caller.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Optional

from diskstore_lib.errors import CorruptEntry, InvalidKey, NotFound, StoreIOError
from diskstore_lib.mapping.base import NAME_MAX
from diskstore_lib.mapping.interfaces import PathMapperProtocol
from diskstore_lib.util import is_temp_file
from .interfaces import MetadataStoreProtocol
from .metadata import detect_metadata_store
from .serializer import PickleSerializer, Serializer

logger = logging.getLogger(__name__)


def resolve_path(mapper: PathMapperProtocol, metadata: MetadataStoreProtocol, key: str) -> Path:
    """Resolve `key` through `mapper`, refusing names reserved for bookkeeping files."""
    if isinstance(key, str):
        suffix = metadata.reserved_suffix
        if suffix and key.endswith(suffix):
            raise InvalidKey(f"Keys ending with {suffix!r} are reserved for metadata files", key=key)
        if suffix and len(os.fsencode(key + suffix)) > NAME_MAX:
            raise InvalidKey(f"Key leaves no room for the {suffix!r} metadata file name", key=key)
        if is_temp_file(key):
            raise InvalidKey(f"Key {key!r} is reserved for temporary files", key=key)
    return mapper.resolve(key)


class ExpirationStore:
    """Read and write the expiration token of each entry.

    Parameters
    - mapper: the mapper used by the content store, so both resolve the
      same path for a key.
    - metadata: where the token is attached; probed from the mapper root
      when omitted.
    - serializer: encodes the token (pickle unless given).
    """

    def __init__(
        self,
        mapper: PathMapperProtocol,
        metadata: Optional[MetadataStoreProtocol] = None,
        serializer: Optional[Serializer] = None,
    ) -> None:
        self.mapper = mapper
        if metadata is None:
            try:
                metadata = detect_metadata_store(mapper.root)
            except OSError as exc:
                raise StoreIOError(f"Cannot probe metadata support under {mapper.root}: {exc}", path=mapper.root) from exc
        self.metadata = metadata
        self.serializer = serializer or PickleSerializer()

    def get(self, key: str) -> Optional[Any]:
        """Return the token for `key`, or None if none is attached or the entry is missing."""
        path = resolve_path(self.mapper, self.metadata, key)
        try:
            raw = self.metadata.get(path)
        except OSError as exc:
            raise StoreIOError(f"Failed to read expiration for {key!r}: {exc}", key=key, path=path) from exc
        if raw is None:
            return None
        try:
            return self.serializer.load(raw)
        except Exception as exc:
            raise CorruptEntry(f"Expiration token for {key!r} cannot be decoded", key=key, path=path) from exc

    def set(self, key: str, token: Any) -> None:
        """Attach `token` to the entry; raises `NotFound` if its content file is absent."""
        path = resolve_path(self.mapper, self.metadata, key)
        data = self.serializer.dump(token)
        try:
            self.metadata.set(path, data)
        except FileNotFoundError as exc:
            raise NotFound(f"Cannot set expiration for {key!r}: no value is stored", key=key, path=path) from exc
        except OSError as exc:
            raise StoreIOError(f"Failed to set expiration for {key!r}: {exc}", key=key, path=path) from exc
        logger.debug("Set expiration for %s", path)

    def delete(self, key: str) -> None:
        path = resolve_path(self.mapper, self.metadata, key)
        try:
            self.metadata.remove(path)
        except OSError as exc:
            raise StoreIOError(f"Failed to remove expiration for {key!r}: {exc}", key=key, path=path) from exc

    def __getitem__(self, key: str) -> Optional[Any]:
        return self.get(key)

    def __setitem__(self, key: str, token: Any) -> None:
        self.set(key, token)

    def __delitem__(self, key: str) -> None:
        self.delete(key)
