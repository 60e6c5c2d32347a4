"""
Atomic file-write utilities.

Prevents corrupted output when a process is interrupted mid-write by
writing to a temporary file in the same directory and then performing an
atomic ``os.replace()`` (POSIX rename guarantee).
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator


@contextmanager
def atomic_path(path: str | os.PathLike, suffix: str | None = None) -> Iterator[Path]:
    """Yield a temporary path that replaces *path* when the block succeeds.

    The temporary file lives in the same directory as *path* so the final
    ``os.replace()`` never crosses a filesystem boundary. Readers see either
    the old file or the new one, never a partially written file.

    Parameters
    ----------
    path:
        Destination file path. Parent directories are created if missing.
    suffix:
        Suffix for the temporary file (defaults to the destination suffix,
        which keeps libraries that sniff extensions happy).

    Examples
    --------
    >>> with atomic_path("out.h5") as tmp:
    ...     write_hdf5_file(tmp)
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=suffix if suffix is not None else path.suffix
    )
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        yield tmp_path
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any failure
        if tmp_path.exists():
            tmp_path.unlink()
        raise


def atomic_write_text(path: str | os.PathLike, content: str) -> None:
    """Write *content* as text atomically via temp-file + rename.

    Parameters
    ----------
    path:
        Destination file path.
    content:
        Text content to write.
    """
    with atomic_path(path) as tmp:
        tmp.write_text(content, encoding="utf-8")
