"""Deterministic package file walker shared by every analysis pass.

All components see the same file set for a package: regular files only
(symlinks are neither followed nor reported), ephemeral directories pruned,
OS metadata files ignored, and results ordered by POSIX relative path so
that nothing downstream depends on the filesystem's enumeration order.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

SKIP_DIRS: frozenset[str] = frozenset({
    ".git",
    "node_modules",
    "__pycache__",
    "venv",
    ".venv",
})

SKIP_FILES: frozenset[str] = frozenset({".DS_Store", "Thumbs.db"})


@dataclass(frozen=True)
class PackageFile:
    """A regular file inside a package.

    Attributes:
        rel_path: Path relative to the package root, ``/``-separated.
        path: Absolute (or caller-relative) filesystem path.
    """

    rel_path: str
    path: Path

    @property
    def suffix(self) -> str:
        """Lower-cased file extension including the dot."""
        return Path(self.rel_path).suffix.lower()


def _walk(directory: Path, root: Path, out: list[PackageFile]) -> None:
    try:
        entries = list(os.scandir(directory))
    except OSError:
        logger.debug("Cannot list directory: %s", directory, exc_info=True)
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                if entry.name not in SKIP_DIRS:
                    _walk(Path(entry.path), root, out)
            elif entry.is_file(follow_symlinks=False):
                if entry.name in SKIP_FILES:
                    continue
                full = Path(entry.path)
                out.append(PackageFile(full.relative_to(root).as_posix(), full))
        except OSError:
            logger.debug("Cannot stat entry: %s", entry.path, exc_info=True)


def walk_package(
    root: str | Path,
    extensions: Iterable[str] | None = None,
) -> list[PackageFile]:
    """List the regular files of a package in sorted relative-path order.

    Args:
        root: Package directory.
        extensions: Optional set of lower-case suffixes (``".js"``) to keep.

    Returns:
        Files sorted by ``rel_path``. A missing or unreadable root yields
        an empty list.
    """
    root_path = Path(root)
    files: list[PackageFile] = []
    _walk(root_path, root_path, files)
    if extensions is not None:
        wanted = frozenset(extensions)
        files = [f for f in files if f.suffix in wanted]
    files.sort(key=lambda f: f.rel_path)
    return files


def read_text(path: Path) -> str | None:
    """Read a source file as text, returning None if it cannot be read."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        logger.debug("Cannot read file: %s", path, exc_info=True)
        return None


def line_of(content: str, offset: int) -> int:
    """Return the 1-based line number of a character offset."""
    return content.count("\n", 0, offset) + 1
