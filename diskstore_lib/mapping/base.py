"""Path mapper interface definitions.

A path mapper turns a caller supplied key into the filesystem path where
the key's value lives below a root directory. Mappers own no data beyond
their configuration; resolving a key may create intermediate directories
so the returned path can be opened for writing straight away.
"""
from __future__ import annotations
import logging
import os
import shutil
import uuid
from abc import ABC, abstractmethod
from pathlib import Path

from diskstore_lib.errors import InvalidKey, InvalidRoot, StoreIOError

logger = logging.getLogger(__name__)

NAME_MAX = 255
_SEPARATORS = tuple(s for s in {"/", os.sep, os.altsep} if s)


def validate_key(key: str) -> str:
    """Return `key` unchanged if it is usable as one path component.

    Raises `InvalidKey` for non-strings, empty keys, the relative
    components ``.`` and ``..``, keys containing a path separator or a
    NUL byte, and keys longer than a file name may be (NAME_MAX bytes).
    """
    if not isinstance(key, str):
        raise InvalidKey(f"Key must be a string, got {type(key).__name__}")
    if key in ("", ".", ".."):
        raise InvalidKey(f"Key {key!r} is not a valid file name", key=key)
    if "\x00" in key:
        raise InvalidKey("Key must not contain NUL bytes", key=key)
    if any(sep in key for sep in _SEPARATORS):
        raise InvalidKey(f"Key {key!r} must not contain a path separator", key=key)
    if len(os.fsencode(key)) > NAME_MAX:
        raise InvalidKey(f"Key is longer than {NAME_MAX} bytes", key=key)
    return key


class PathMapper(ABC):
    """Abstract base class for path mappers.

    The constructor guarantees the root exists and is a directory: a plain
    file at that location raises `InvalidRoot`, a missing root is created
    together with any missing ancestors.
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root).absolute()
        if self._root.exists() and not self._root.is_dir():
            raise InvalidRoot(f"The path you supplied {self._root} is not a directory", path=self._root)
        self._make_root()

    @property
    def root(self) -> Path:
        return self._root

    @abstractmethod
    def resolve(self, key: str) -> Path:
        """Return the path for `key`, creating missing parent directories."""

    def clear(self) -> None:
        """Remove everything below the root and leave an empty root behind.

        The root is first renamed out of the way and a fresh directory is
        created in its place, so a reader opening any single file sees
        either the old tree or the new empty one. When the root cannot be
        renamed it is emptied in place instead: a nameless root such as
        ``/``, a mount point, a symlink (renaming would move the link, not
        the data), the working directory or one of its parents, or a
        read-only parent.
        """
        if not self._root.name or self._root.is_symlink() or os.path.ismount(self._root) or self._holds_cwd():
            self._empty_in_place()
            return
        parked = self._root.with_name(f".{self._root.name}.clearing-{uuid.uuid4().hex}")
        try:
            os.rename(self._root, parked)
        except FileNotFoundError:
            self._make_root()
            return
        except OSError as exc:
            logger.debug("Cannot swap out %s (%s); clearing in place", self._root, exc)
            self._empty_in_place()
            return
        self._make_root()
        try:
            shutil.rmtree(parked)
        except OSError as exc:
            raise StoreIOError(f"Failed to remove cleared tree {parked}: {exc}", path=parked) from exc
        logger.debug("Cleared %s", self._root)

    def _holds_cwd(self) -> bool:
        try:
            cwd = Path.cwd()
        except FileNotFoundError:
            return False
        return cwd == self._root or self._root in cwd.parents

    def _make_root(self) -> None:
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise InvalidRoot(f"Cannot create root directory {self._root}: {exc}", path=self._root) from exc

    def _empty_in_place(self) -> None:
        self._make_root()
        try:
            for child in self._root.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
        except OSError as exc:
            raise StoreIOError(f"Failed to clear {self._root}: {exc}", path=self._root) from exc

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(root={str(self._root)!r})"
