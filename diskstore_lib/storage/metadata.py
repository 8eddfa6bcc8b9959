"""Side-channel metadata attached to content files.

Expiration tokens never live inside the content bytes. Where the
filesystem supports extended attributes they are stored as one; elsewhere
a sibling ``<leaf>.meta`` file takes its place. Both stores work on paths
and treat a missing content file as "no metadata".

All methods raise plain `OSError` on unexpected failures; callers wrap
them into the store's error types.
"""
from __future__ import annotations
import contextlib
import errno
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from diskstore_lib.errors import InvalidConfiguration
from diskstore_lib.util import atomic_write

logger = logging.getLogger(__name__)

ATTRIBUTE_NAME = "user.diskstore.expires"
SIDECAR_SUFFIX = ".meta"

_NO_ATTRIBUTE = {code for code in (getattr(errno, "ENODATA", None), getattr(errno, "ENOATTR", None)) if code}
_UNSUPPORTED = {errno.ENOTSUP, errno.EOPNOTSUPP, errno.EPERM, errno.EACCES}


def xattr_supported() -> bool:
    return all(hasattr(os, name) for name in ("getxattr", "setxattr", "removexattr"))


class XattrMetadataStore:
    """Keep metadata in an extended attribute of the content file."""

    reserved_suffix: Optional[str] = None

    def __init__(self, attribute: str = ATTRIBUTE_NAME) -> None:
        if not xattr_supported():
            raise OSError(errno.ENOTSUP, "extended attributes are not available on this platform")
        self.attribute = attribute

    def get(self, path: Path) -> Optional[bytes]:
        try:
            return os.getxattr(path, self.attribute)
        except FileNotFoundError:
            return None
        except OSError as exc:
            if exc.errno in _NO_ATTRIBUTE:
                return None
            raise

    def set(self, path: Path, data: bytes) -> None:
        os.setxattr(path, self.attribute, data)

    def remove(self, path: Path) -> None:
        try:
            os.removexattr(path, self.attribute)
        except FileNotFoundError:
            return
        except OSError as exc:
            if exc.errno not in _NO_ATTRIBUTE:
                raise

    def transfer(self, src: Path, dst: Path) -> None:
        data = self.get(src)
        if data is not None:
            self.set(dst, data)

    def __repr__(self) -> str:
        return f"XattrMetadataStore(attribute={self.attribute!r})"


class SidecarMetadataStore:
    """Keep metadata in a sibling file named ``<leaf>.meta``.

    Keys ending with the sidecar suffix are reserved, the file store
    refuses them so content and metadata files cannot collide.
    """

    reserved_suffix: Optional[str] = SIDECAR_SUFFIX

    def sidecar(self, path: Path) -> Path:
        return path.with_name(path.name + SIDECAR_SUFFIX)

    def get(self, path: Path) -> Optional[bytes]:
        if not path.is_file():
            return None
        try:
            return self.sidecar(path).read_bytes()
        except FileNotFoundError:
            return None

    def set(self, path: Path, data: bytes) -> None:
        if not path.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path))
        atomic_write(self.sidecar(path), data)

    def remove(self, path: Path) -> None:
        self.sidecar(path).unlink(missing_ok=True)

    def transfer(self, src: Path, dst: Path) -> None:
        # The sidecar is keyed by the final file name, which a rename keeps.
        return

    def __repr__(self) -> str:
        return "SidecarMetadataStore()"


def detect_metadata_store(root: Path):
    """Pick the metadata store for the filesystem holding `root`.

    A scratch file in `root` is tagged with an extended attribute; if that
    works the xattr store is used, otherwise the sidecar store.
    """
    if not xattr_supported():
        logger.info("Extended attributes unavailable on this platform; using sidecar metadata files")
        return SidecarMetadataStore()
    store = XattrMetadataStore()
    fd, probe = tempfile.mkstemp(prefix=".xattr-probe.", dir=root)
    os.close(fd)
    try:
        store.set(Path(probe), b"probe")
    except OSError as exc:
        if exc.errno not in _UNSUPPORTED:
            raise
        logger.info("Filesystem at %s does not support extended attributes (%s); using sidecar metadata files", root, exc)
        return SidecarMetadataStore()
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(probe)
    logger.debug("Using extended attribute %s for metadata under %s", ATTRIBUTE_NAME, root)
    return store


_STORES = {
    "xattr": XattrMetadataStore,
    "sidecar": SidecarMetadataStore,
}


def get_metadata_store(name: str, root: Path):
    """Return the metadata store called `name` (``auto``, ``xattr`` or ``sidecar``)."""
    if name == "auto":
        return detect_metadata_store(root)
    try:
        return _STORES[name]()
    except KeyError:
        raise InvalidConfiguration(f"Unknown metadata store {name!r}; expected auto, xattr or sidecar") from None
