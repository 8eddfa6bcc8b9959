from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class PathMapperProtocol(Protocol):
    """Structural type for mappers mirroring `diskstore_lib.mapping.PathMapper`.

    Custom mappers do not need to inherit from the abstract base class;
    anything providing these members can be handed to `FileStore`.
    """

    @property
    def root(self) -> Path: ...

    def resolve(self, key: str) -> Path: ...

    def clear(self) -> None: ...
