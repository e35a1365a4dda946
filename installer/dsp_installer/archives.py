"""
archives.py — Archive extraction and tree normalization
-------------------------------------------------------
Mod archives built on Windows often store paths with backslashes, and many
wrap their content in one or more redundant folders. These helpers extract
archives and bring the extracted tree into a predictable shape.
"""
from __future__ import annotations
import io
import os
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import Union
from .errors import ArchiveError
from .logging_setup import get_logger

log = get_logger("dsp.installer.archives")


def extract_zip(archive: Union[Path, bytes], dest: Path) -> Path:
    """Extract a zip file (path or raw bytes) into dest, overwriting existing files."""
    dest.mkdir(parents=True, exist_ok=True)
    source = io.BytesIO(archive) if isinstance(archive, bytes) else archive
    try:
        with zipfile.ZipFile(source) as zf:
            zf.extractall(dest)
    except (zipfile.BadZipFile, NotImplementedError, RuntimeError, zlib.error, OSError) as e:
        raise ArchiveError(f"Failed to extract zip archive into {dest}: {e}") from e
    return dest


def extract_tar(archive: Path, dest: Path) -> Path:
    dest.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive, "r:*") as tf:
            tf.extractall(dest, filter="tar")
    except (tarfile.TarError, OSError) as e:
        raise ArchiveError(f"Failed to extract {archive} into {dest}: {e}") from e
    return dest


def normalize_path_name(name: str) -> str:
    return name.replace("\\", "/")


def package_dir_name(identifier: str) -> str:
    """'Namespace/Name' -> 'Namespace-Name'."""
    return identifier.replace("/", "-")


def _merge_move(src: Path, dst: Path) -> None:
    if src.is_dir() and not src.is_symlink() and dst.is_dir():
        for child in list(src.iterdir()):
            _merge_move(child, dst / child.name)
        src.rmdir()
        return
    if dst.is_dir() and not dst.is_symlink():
        shutil.rmtree(dst)
    os.replace(src, dst)


def fix_filenames(root: Path) -> int:
    """
    Move every entry whose name contains a backslash to the path the
    backslashes describe, relative to root. Returns the number of moves.
    """
    moved = 0
    while True:
        bad = sorted((p for p in root.rglob("*") if "\\" in p.name), key=lambda p: len(p.parts))
        if not bad:
            return moved
        for src in bad:
            # an ancestor was moved earlier in this pass; picked up on rescan
            if not src.exists() and not src.is_symlink():
                continue
            dst = root / normalize_path_name(src.relative_to(root).as_posix())
            if not dst.resolve().is_relative_to(root.resolve()):
                raise ArchiveError(f"Refusing to move {src.name!r} outside {root}")
            dst.parent.mkdir(parents=True, exist_ok=True)
            log.debug("Fixing filename %s -> %s", src, dst)
            _merge_move(src, dst)
            moved += 1


def collapse_single_child_dirs(root: Path) -> int:
    """
    If root holds exactly one directory, hoist that directory's content up
    one level for as long as each level has exactly one child.

    Stops when the current level is empty, has more than one child, or its
    single child is a file. Returns the number of levels removed.
    """
    subdirs = [p for p in root.iterdir() if p.is_dir() and not p.is_symlink()]
    if len(subdirs) != 1:
        return 0

    current = subdirs[0]
    collapsed = 0
    while True:
        children = list(current.iterdir())
        if len(children) != 1:
            break
        child = children[0]
        target = root / child.name
        if target == current:
            current = current.rename(root / f".{current.name}.collapse")
            child = current / child.name
        elif target.exists() or target.is_symlink():
            log.warning("Not collapsing %s: %s already exists", current, target)
            break
        os.replace(child, target)
        current.rmdir()
        collapsed += 1
        if not target.is_dir() or target.is_symlink():
            break
        current = target
    return collapsed


def merge_tree(src: Path, dst: Path, *, overwrite: bool) -> int:
    """
    Copy every file under src into dst. Existing destination files are
    replaced only when overwrite is set. Returns the number of files copied.
    """
    copied = 0
    for root, _, files in os.walk(src):
        rel = Path(root).relative_to(src)
        target_dir = dst / rel
        target_dir.mkdir(parents=True, exist_ok=True)
        for fname in files:
            target = target_dir / fname
            if target.exists() and not overwrite:
                log.debug("Keeping existing %s", target)
                continue
            shutil.copy2(Path(root) / fname, target)
            copied += 1
    return copied


def clear_dir(path: Path) -> None:
    if not path.is_dir():
        return
    for child in path.iterdir():
        if child.is_dir() and not child.is_symlink():
            shutil.rmtree(child)
        else:
            child.unlink()
