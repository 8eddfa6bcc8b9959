"""Key/value store interface definitions.

Defines the KeyValueStore abstract class implemented by `FileStore`.
Subclasses provide the five primitives; the multi-key helpers are
implemented here once in terms of those primitives.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, Iterator, Mapping, Optional


class KeyValueStore(ABC):
    """Abstract key/value store.

    Implementations are not required to be thread-safe; callers sharing a
    store between threads or processes serialize access themselves.
    """

    @abstractmethod
    def exists(self, key: str) -> bool:
        """Return True if a value is stored under `key`."""

    @abstractmethod
    def read(self, key: str) -> Optional[Any]:
        """Return the value stored under `key`, or None if there is none."""

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Store `value` under `key`, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> Optional[Any]:
        """Remove `key` and return its previous value (None if absent)."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every key."""

    @abstractmethod
    def keys(self) -> Iterator[str]:
        """Iterate over the keys currently stored."""

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.exists(key)

    def fetch(self, key: str, default: Any = None, factory: Optional[Callable[[str], Any]] = None) -> Any:
        """Return the stored value, else `factory(key)` if given, else `default`.

        Nothing is written back; use `write` to cache a computed value.
        """
        value = self.read(key)
        if value is not None:
            return value
        if factory is not None:
            return factory(key)
        return default

    def read_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Read several keys; absent keys are left out of the result."""
        found: Dict[str, Any] = {}
        for key in keys:
            value = self.read(key)
            if value is not None:
                found[key] = value
        return found

    def write_many(self, items: Mapping[str, Any]) -> None:
        for key, value in items.items():
            self.write(key, value)

    def delete_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        """Delete several keys and return the values that were present."""
        removed: Dict[str, Any] = {}
        for key in keys:
            value = self.delete(key)
            if value is not None:
                removed[key] = value
        return removed
