"""File-backed key/value store.

Every key maps to one file below the mapper's root; the file holds the
serialized value. Writes go through a temporary file and an atomic rename
so readers never observe partial content. Expiration tokens are kept out
of band by the composed `ExpirationStore`.
"""
from __future__ import annotations
import logging
import os
from pathlib import Path
from typing import Any, Iterator, Optional

from diskstore_lib.errors import CorruptEntry, InvalidConfiguration, StoreIOError
from diskstore_lib.mapping import DirectMapper, PathMapperProtocol
from diskstore_lib.util import atomic_write, is_temp_file
from .base import KeyValueStore
from .expiration import ExpirationStore, resolve_path
from .interfaces import MetadataStoreProtocol
from .serializer import PickleSerializer, Serializer

logger = logging.getLogger(__name__)


class FileStore(KeyValueStore):
    """Store values as files below a root directory.

    Pass either `root` (keys map directly to file names) or a ready
    `mapper`. `serializer` defaults to pickle; `metadata` defaults to
    extended attributes when the filesystem supports them and sidecar
    files otherwise.
    """

    def __init__(
        self,
        root: str | os.PathLike[str] | None = None,
        *,
        mapper: Optional[PathMapperProtocol] = None,
        serializer: Optional[Serializer] = None,
        metadata: Optional[MetadataStoreProtocol] = None,
        expiration_serializer: Optional[Serializer] = None,
    ) -> None:
        if (root is None) == (mapper is None):
            raise InvalidConfiguration("FileStore requires exactly one of `root` or `mapper`")
        if mapper is None:
            mapper = DirectMapper(root)
        elif not isinstance(mapper, PathMapperProtocol):
            raise InvalidConfiguration(f"{mapper!r} does not provide root, resolve() and clear()")
        self.mapper = mapper
        self.serializer = serializer or PickleSerializer()
        self._expiration = ExpirationStore(mapper, metadata, expiration_serializer)

    @property
    def expiration(self) -> ExpirationStore:
        return self._expiration

    @property
    def root(self) -> Path:
        return self.mapper.root

    def _path(self, key: str) -> Path:
        return resolve_path(self.mapper, self._expiration.metadata, key)

    def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    def read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreIOError(f"Failed to read {key!r}: {exc}", key=key, path=path) from exc
        logger.debug("FileStore loaded %s (%d bytes)", path, len(data))
        try:
            return self.serializer.load(data)
        except Exception as exc:
            raise CorruptEntry(f"Stored value for {key!r} cannot be decoded", key=key, path=path) from exc

    def write(self, key: str, value: Any) -> None:
        path = self._path(key)
        data = self.serializer.dump(value)
        metadata = self._expiration.metadata
        try:
            atomic_write(path, data, prepare=lambda tmp: metadata.transfer(path, tmp))
        except OSError as exc:
            raise StoreIOError(f"Failed to write {key!r}: {exc}", key=key, path=path) from exc
        logger.debug("FileStore saved %s (%d bytes)", path, len(data))

    def delete(self, key: str) -> Optional[Any]:
        path = self._path(key)
        try:
            value = self.read(key)
        except CorruptEntry:
            logger.warning("Removing undecodable entry %s", path)
            value = None
        try:
            path.unlink()
        except FileNotFoundError:
            value = None
        except OSError as exc:
            raise StoreIOError(f"Failed to delete {key!r}: {exc}", key=key, path=path) from exc
        try:
            self._expiration.metadata.remove(path)
        except OSError as exc:
            raise StoreIOError(f"Failed to remove metadata of {key!r}: {exc}", key=key, path=path) from exc
        return value

    def clear(self) -> None:
        self.mapper.clear()
        logger.info("Cleared store at %s", self.mapper.root)

    def keys(self) -> Iterator[str]:
        """Iterate over stored keys in a stable (sorted per directory) order."""
        suffix = self._expiration.metadata.reserved_suffix
        for _dirpath, dirnames, filenames in os.walk(self.mapper.root):
            dirnames.sort()
            for name in sorted(filenames):
                if is_temp_file(name) or (suffix and name.endswith(suffix)):
                    continue
                yield name

    def __repr__(self) -> str:
        return f"FileStore(mapper={self.mapper!r}, serializer={type(self.serializer).__name__})"


def write_with_expiration(store: FileStore, key: str, value: Any, token: Any) -> None:
    """Write `value` then attach `token`; the two steps are not atomic together."""
    store.write(key, value)
    store.expiration.set(key, token)
