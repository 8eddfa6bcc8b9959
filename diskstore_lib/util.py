from __future__ import annotations
import contextlib
import os
import tempfile
from pathlib import Path
from typing import Callable, Optional

TEMP_SUFFIX = ".diskstore-tmp"


def current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def is_temp_file(name: str) -> bool:
    """True for the scratch files left behind by an interrupted `atomic_write`."""
    return name.startswith(".") and name.endswith(TEMP_SUFFIX)


def atomic_write(path: Path, data: bytes, prepare: Optional[Callable[[Path], None]] = None) -> None:
    """Write `data` to `path` so readers only ever see the old or new bytes.

    The payload goes to a temporary file in the same directory, is flushed
    and fsynced, then renamed over `path`. `prepare` is called with the
    temporary path just before the rename. The temporary file is removed
    if anything fails. The temporary name does not embed `path.name`, so
    any name the filesystem accepts can be written, and the result gets
    the usual umask-derived permissions rather than mkstemp's 0600.
    """
    fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=TEMP_SUFFIX, dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            os.chmod(tmp, 0o666 & ~current_umask())
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if prepare is not None:
            prepare(tmp)
        os.replace(tmp, path)
    finally:
        with contextlib.suppress(FileNotFoundError):
            tmp.unlink()
