"""Content-addressed fingerprinting of skill packages.

The fingerprint is the identity key for ledger lookups and the cheap
short-circuit used by the Gate and the Watcher: an unchanged hash means an
unchanged package, so the expensive scans can be skipped.

Hash construction (SHA-256, one streaming digest)::

    for each file in sorted relative-path order:
        update(f"{rel_path}:{byte_length}\\n")
        update(raw_bytes)

Including the path and length in the stream makes the fingerprint
path-sensitive: renaming a file, or moving bytes from one file to the next,
changes the hash even when the concatenated contents do not.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from skillguard.core.walk import walk_package

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackageFingerprint:
    """Deterministic identity of a package directory.

    Attributes:
        hash: Hex SHA-256 digest over all included files.
        file_count: Number of files that contributed to the digest.
        total_size: Sum of their sizes in bytes.
    """

    hash: str
    file_count: int
    total_size: int

    @property
    def short(self) -> str:
        """First 16 hex characters, for display."""
        return self.hash[:16]


@dataclass(frozen=True)
class VerifyResult:
    """Outcome of comparing a package against an expected hash."""

    verified: bool
    current_hash: str
    expected_hash: str


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except OSError:
        logger.debug("Skipping unreadable file: %s", path, exc_info=True)
        return None


def fingerprint(path: str | Path) -> PackageFingerprint:
    """Compute the fingerprint of a package directory.

    Unreadable files are treated as absent rather than failing the walk, so
    this function never raises for I/O problems inside the package.

    Args:
        path: Package root directory.

    Returns:
        The package's ``PackageFingerprint``.
    """
    digest = hashlib.sha256()
    file_count = 0
    total_size = 0

    for item in walk_package(path):
        content = _read_bytes(item.path)
        if content is None:
            continue
        digest.update(f"{item.rel_path}:{len(content)}\n".encode("utf-8"))
        digest.update(content)
        file_count += 1
        total_size += len(content)

    return PackageFingerprint(
        hash=digest.hexdigest(),
        file_count=file_count,
        total_size=total_size,
    )


def file_digests(path: str | Path) -> dict[str, str]:
    """Map each file's relative path to the SHA-256 of its bytes.

    Used by the diff scanner to classify files as added, removed, modified
    or unchanged. Unreadable files are omitted.
    """
    inventory: dict[str, str] = {}
    for item in walk_package(path):
        content = _read_bytes(item.path)
        if content is not None:
            inventory[item.rel_path] = hashlib.sha256(content).hexdigest()
    return inventory


def verify(path: str | Path, expected_hash: str) -> VerifyResult:
    """Check whether a package still matches a previously recorded hash."""
    current = fingerprint(path).hash
    return VerifyResult(
        verified=current == expected_hash,
        current_hash=current,
        expected_hash=expected_hash,
    )
