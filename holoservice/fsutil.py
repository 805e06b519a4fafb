"""
Filesystem helpers: staged instance directories, atomic file writes and
tree copies.

A new instance tree is built in a hidden sibling directory and renamed into
place only once it is complete, so a scan of the Service root never sees a
half-written instance. On any failure the staging directory is removed.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, List

from .errors import AlreadyExists, CopyFailure

logger = logging.getLogger(__name__)

STAGING_SUFFIX = ".staging"
REPLACED_SUFFIX = ".replaced"


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


def _publish(staging: Path, root: Path, overwrite: bool) -> None:
    staging.chmod(0o755)
    if not root.exists():
        os.rename(staging, root)
        return
    if not overwrite:
        raise AlreadyExists(root)

    backup = Path(tempfile.mkdtemp(prefix=f".{root.name}.", suffix=REPLACED_SUFFIX, dir=str(root.parent)))
    backup.rmdir()
    os.rename(root, backup)
    try:
        os.rename(staging, root)
    except OSError:
        os.rename(backup, root)
        raise
    shutil.rmtree(backup, ignore_errors=True)


@contextmanager
def staged_directory(root: Path, overwrite: bool = False) -> Iterator[Path]:
    """
    Yield an empty staging directory next to root; publish it as root when
    the block exits cleanly. Raises AlreadyExists up front when root exists
    and overwrite is false, before anything is written.
    """
    root = Path(root)
    if root.exists() and not overwrite:
        raise AlreadyExists(root)
    root.parent.mkdir(parents=True, exist_ok=True)
    staging = Path(tempfile.mkdtemp(prefix=f".{root.name}.", suffix=STAGING_SUFFIX, dir=str(root.parent)))
    logger.debug("staging %s in %s", root, staging)
    try:
        yield staging
        _publish(staging, root, overwrite)
    finally:
        if staging.exists():
            shutil.rmtree(staging, ignore_errors=True)


def copy_tree(src: Path, dst: Path, skip: Iterable[str] = ()) -> None:
    """Copy src into dst, leaving out the top-level names in skip."""
    src = Path(src)
    skipped = set(skip)

    def _ignore(directory: str, names: List[str]) -> List[str]:
        if Path(directory) == src:
            return [n for n in names if n in skipped]
        return []

    try:
        shutil.copytree(src, dst, ignore=_ignore, dirs_exist_ok=True, symlinks=True)
    except OSError as exc:
        raise CopyFailure(src, dst, exc) from exc
