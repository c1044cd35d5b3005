from __future__ import annotations

import errno
import hashlib
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

TEMP_PREFIX = ".anni-tmp-"
DIGEST_CHUNK = 1024 * 1024


def path_exists(path: Path) -> Optional[bool]:
    """Like Path.exists() but distinguishes a missing parent (None) and survives ENAMETOOLONG."""
    try:
        path.stat()
        return True
    except FileNotFoundError:
        if not path.parent.exists():
            return None
        return False
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise
        parent = path.parent
        try:
            with os.scandir(parent) as it:
                for entry in it:
                    if entry.name == path.name:
                        return True
        except FileNotFoundError:
            return None
        return False


def safe_rename(src: Path, dst: Path) -> None:
    try:
        src.rename(dst)
        return
    except OSError as exc:
        if exc.errno != errno.ENAMETOOLONG:
            raise
    src_dir_fd = os.open(src.parent, os.O_RDONLY)
    try:
        dst.parent.mkdir(parents=True, exist_ok=True)
        dst_dir_fd = os.open(dst.parent, os.O_RDONLY)
        try:
            os.rename(src.name, dst.name, src_dir_fd=src_dir_fd, dst_dir_fd=dst_dir_fd)
        finally:
            os.close(dst_dir_fd)
    finally:
        os.close(src_dir_fd)


def move_file(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    try:
        safe_rename(src, dst)
    except OSError as exc:
        if exc.errno != errno.EXDEV:
            raise
        # Cross-device rename failed; copy into a temp sibling first so dst is never half-written.
        copy_file_atomic(src, dst)
        src.unlink()


def copy_file_atomic(src: Path, dst: Path) -> None:
    dst.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=dst.parent)
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        shutil.copy2(src, tmp)
        os.replace(tmp, dst)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def atomic_write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=path.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, path)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


def file_digest(path: Path) -> str:
    hasher = hashlib.sha256()
    with path.open("rb") as fh:
        for chunk in iter(lambda: fh.read(DIGEST_CHUNK), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def files_identical(left: Path, right: Path) -> bool:
    if left.stat().st_size != right.stat().st_size:
        return False
    return file_digest(left) == file_digest(right)


def is_temp_file(path: Path) -> bool:
    return path.name.startswith(TEMP_PREFIX)


def remove_empty_dirs(directory: Path, stop_at: Path) -> None:
    """Remove directory and its empty parents, never touching stop_at or anything above it."""
    current = directory
    while current != stop_at and stop_at in current.parents:
        try:
            next(current.iterdir())
            return
        except StopIteration:
            pass
        except FileNotFoundError:
            current = current.parent
            continue
        try:
            current.rmdir()
        except OSError as exc:
            logger.warning("Failed to remove %s: %s", current, exc)
            return
        logger.debug("Removed empty directory %s", current)
        current = current.parent
