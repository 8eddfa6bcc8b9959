from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, runtime_checkable


@runtime_checkable
class StoreProtocol(Protocol):
    """Key/value store protocol mirroring `diskstore_lib.storage.KeyValueStore`.

    Implementations follow the semantics documented on the abstract base
    class in `diskstore_lib.storage.base` (None for absent keys, errors
    from `diskstore_lib.errors` for everything else).
    """

    def exists(self, key: str) -> bool: ...

    def read(self, key: str) -> Optional[Any]: ...

    def write(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> Optional[Any]: ...

    def clear(self) -> None: ...

    def keys(self) -> Iterator[str]: ...


@runtime_checkable
class MetadataStoreProtocol(Protocol):
    """Side-channel metadata attached to a content file.

    `get` returns None when either the file or its metadata is missing,
    `set` raises `FileNotFoundError` when the file is missing, `remove`
    is a no-op when nothing is attached. `transfer` copies metadata from
    the current file onto its replacement before a rename.
    """

    reserved_suffix: Optional[str]

    def get(self, path: Path) -> Optional[bytes]: ...

    def set(self, path: Path, data: bytes) -> None: ...

    def remove(self, path: Path) -> None: ...

    def transfer(self, src: Path, dst: Path) -> None: ...
