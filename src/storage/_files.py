"""Filesystem helpers shared by the on-disk stores."""

import contextlib
import os
import shutil
import tempfile
from pathlib import Path


def atomic_write_bytes(path: Path, content: bytes) -> None:
    """Write ``content`` to ``path`` so readers see either the old or new file.

    The data goes to a temporary sibling first, is fsynced, then renamed
    over the target.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_name)
        raise


def remove_tree(path: Path) -> bool:
    """Remove a directory tree. Returns False if it did not exist."""
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        return False
    return True
