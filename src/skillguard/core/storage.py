"""Persistence helpers for the two shared state files.

The Ledger store and the Watcher state file are both read in full, mutated
in memory and written back in full. Two rules keep concurrent invocations
from clobbering each other:

* every read-modify-write cycle runs under an advisory lock on a sibling
  ``<file>.lock`` (``filelock``), and
* every write goes to a temporary file in the same directory which is then
  renamed over the target, so readers never observe a half-written file.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from filelock import FileLock

from skillguard.exceptions import StateError

logger = logging.getLogger(__name__)

LOCK_TIMEOUT_SECONDS: float = 30.0


def state_lock(path: Path, timeout: float = LOCK_TIMEOUT_SECONDS) -> FileLock:
    """Return the advisory lock guarding ``path``.

    The lock file lives next to the target so that it shares its
    permissions and filesystem.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    return FileLock(str(path) + ".lock", timeout=timeout)


def atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` via temp file + rename.

    Raises:
        StateError: If the directory cannot be created or the write fails.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as exc:
        raise StateError(f"Cannot write {path}: {exc}") from exc

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_path, path)
    except OSError as exc:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise StateError(f"Cannot write {path}: {exc}") from exc


def atomic_write_json(path: Path, data: Any) -> None:
    """Serialize ``data`` as indented JSON and write it atomically."""
    atomic_write_text(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def read_json(path: Path) -> Any | None:
    """Read a JSON document, returning None when missing or corrupt.

    Corruption is logged as a warning: callers treat it as an empty store.
    """
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except OSError:
        logger.warning("Cannot read %s; treating as empty", path, exc_info=True)
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Corrupt JSON in %s; treating as empty", path)
        return None
