from __future__ import annotations

import os
from pathlib import Path
import shutil
import stat

from dirmirror.errors import CopyFailed, CreateFailed, DeleteFailed, DirectoryUnreadable, StatUnavailable
from dirmirror.models import EntryInfo, Snapshot


MTIME_TOLERANCE_SECONDS = 1.0


def read_snapshot(path: Path, allow_missing: bool = False) -> Snapshot:
    """List the immediate children of ``path`` split into dirs and files.

    Symlinks are not followed, so a link to a directory is listed as a file.
    """
    snapshot = Snapshot()
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                info = entry.stat(follow_symlinks=False)
                is_dir = entry.is_dir(follow_symlinks=False)
                item = EntryInfo(
                    name=entry.name,
                    is_dir=is_dir,
                    size=info.st_size,
                    mtime=info.st_mtime,
                    mode=stat.S_IMODE(info.st_mode),
                )
                if is_dir:
                    snapshot.dirs[entry.name] = item
                else:
                    snapshot.files[entry.name] = item
    except FileNotFoundError as exc:
        if allow_missing:
            return Snapshot()
        raise DirectoryUnreadable(f"Cannot read directory '{path}': {exc}", path) from exc
    except OSError as exc:
        raise DirectoryUnreadable(f"Cannot read directory '{path}': {exc}", path) from exc
    return snapshot


def _stat(path: Path) -> os.stat_result:
    try:
        return path.stat()
    except OSError as exc:
        raise StatUnavailable(f"Cannot get file info for '{path}': {exc}", path) from exc


def files_differ(first: Path, second: Path) -> bool:
    first_stat = _stat(first)
    second_stat = _stat(second)
    if first_stat.st_size != second_stat.st_size:
        return True
    return abs(first_stat.st_mtime - second_stat.st_mtime) > MTIME_TOLERANCE_SECONDS


def copy_file(source_file: Path, destination_file: Path) -> None:
    """Copy bytes and mtime. A destination symlink is replaced, not written through."""
    try:
        if destination_file.is_symlink():
            destination_file.unlink()
        shutil.copyfile(source_file, destination_file)
    except OSError as exc:
        raise CopyFailed(f"Cannot copy '{source_file}' to '{destination_file}': {exc}", source_file) from exc

    try:
        source_stat = source_file.stat()
    except OSError as exc:
        raise CopyFailed(f"Cannot get file info for '{source_file}': {exc}", source_file) from exc

    try:
        os.utime(destination_file, ns=(source_stat.st_mtime_ns, source_stat.st_mtime_ns))
    except OSError as exc:
        raise CopyFailed(
            f"Cannot set modification time for '{destination_file}': {exc}", destination_file
        ) from exc


def create_dir(path: Path, mode: int) -> None:
    try:
        path.mkdir(mode=mode)
    except OSError as exc:
        raise CreateFailed(f"Cannot create dir '{path}': {exc}", path) from exc


def delete_dir(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        raise DeleteFailed(f"Cannot delete dir '{path}': {exc}", path) from exc


def delete_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError as exc:
        raise DeleteFailed(f"Cannot delete file '{path}': {exc}", path) from exc
