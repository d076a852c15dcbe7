"""Tests for package fingerprinting, per-file digests and hash verification."""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from skillguard.core.hasher import file_digests, fingerprint, verify
from skillguard.core.walk import walk_package


def _write_tree(root: Path, files: dict[str, bytes]) -> None:
    for rel_path, content in files.items():
        target = root / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)


# ---------------------------------------------------------------------------
# Fingerprint
# ---------------------------------------------------------------------------


class TestFingerprint:
    """Deterministic identity of a package directory."""

    def test_counts_files_and_bytes(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"a.txt": b"abc", "sub/b.txt": b"hello"})
        fp = fingerprint(tmp_path)
        assert fp.file_count == 2
        assert fp.total_size == 8
        assert len(fp.hash) == 64
        assert fp.short == fp.hash[:16]

    def test_identical_trees_hash_identically(self, tmp_path: Path) -> None:
        files = {"SKILL.md": b"name: x\n", "lib/util.js": b"export const a = 1;\n"}
        _write_tree(tmp_path / "one", files)
        _write_tree(tmp_path / "two", dict(reversed(list(files.items()))))
        assert fingerprint(tmp_path / "one").hash == fingerprint(tmp_path / "two").hash

    def test_content_change_changes_hash(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"a.txt": b"one"})
        before = fingerprint(tmp_path).hash
        (tmp_path / "a.txt").write_bytes(b"two")
        assert fingerprint(tmp_path).hash != before

    def test_rename_changes_hash(self, tmp_path: Path) -> None:
        """File paths are part of the digest, not just contents."""
        _write_tree(tmp_path, {"a.txt": b"same"})
        before = fingerprint(tmp_path).hash
        (tmp_path / "a.txt").rename(tmp_path / "b.txt")
        assert fingerprint(tmp_path).hash != before

    def test_ephemeral_dirs_and_os_files_excluded(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"index.js": b"x"})
        before = fingerprint(tmp_path)
        _write_tree(tmp_path, {
            "node_modules/dep/index.js": b"dep",
            ".git/HEAD": b"ref",
            "__pycache__/m.pyc": b"\x00",
            ".venv/bin/python": b"",
            "venv/lib.py": b"",
            ".DS_Store": b"meta",
            "Thumbs.db": b"meta",
        })
        after = fingerprint(tmp_path)
        assert after == before

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unsupported")
    def test_symlinks_not_followed(self, tmp_path: Path) -> None:
        pkg = tmp_path / "pkg"
        _write_tree(pkg, {"index.js": b"x"})
        outside = tmp_path / "outside.txt"
        outside.write_text("secret")
        before = fingerprint(pkg).hash
        (pkg / "link.txt").symlink_to(outside)
        assert fingerprint(pkg).hash == before

    def test_empty_directory(self, tmp_path: Path) -> None:
        fp = fingerprint(tmp_path)
        assert fp.file_count == 0
        assert fp.total_size == 0

    def test_missing_directory_does_not_raise(self, tmp_path: Path) -> None:
        fp = fingerprint(tmp_path / "nope")
        assert fp.file_count == 0


class TestHashDeterminismProperties:
    """Property: the fingerprint depends only on the tree's contents."""

    @settings(max_examples=30, suppress_health_check=[HealthCheck.function_scoped_fixture])
    @given(
        files=st.dictionaries(
            keys=st.from_regex(r"[a-z]{1,6}(/[a-z]{1,6})?\.txt", fullmatch=True),
            values=st.binary(max_size=64),
            min_size=1,
            max_size=6,
        )
    )
    def test_write_order_irrelevant(self, tmp_path_factory: pytest.TempPathFactory, files: dict[str, bytes]) -> None:
        # A path that is both a file and a directory prefix cannot be written.
        stems = {p[:-4] for p in files}
        if any(p.split("/")[0] in stems for p in files if "/" in p):
            return
        forward = tmp_path_factory.mktemp("fwd")
        backward = tmp_path_factory.mktemp("bwd")
        _write_tree(forward, files)
        _write_tree(backward, dict(reversed(list(files.items()))))
        assert fingerprint(forward) == fingerprint(backward)
        assert fingerprint(forward).file_count == len(files)


# ---------------------------------------------------------------------------
# Per-file digests and verification
# ---------------------------------------------------------------------------


class TestFileDigests:
    def test_one_digest_per_file(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"a.txt": b"a", "dir/b.txt": b"b"})
        digests = file_digests(tmp_path)
        assert sorted(digests) == ["a.txt", "dir/b.txt"]
        assert digests["a.txt"] != digests["dir/b.txt"]

    def test_walk_order_is_sorted(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"z.txt": b"", "a/b.txt": b"", "m.txt": b""})
        assert [f.rel_path for f in walk_package(tmp_path)] == ["a/b.txt", "m.txt", "z.txt"]


class TestVerify:
    def test_matching_hash_verifies(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"a.txt": b"a"})
        expected = fingerprint(tmp_path).hash
        result = verify(tmp_path, expected)
        assert result.verified is True
        assert result.current_hash == expected

    def test_modified_tree_fails(self, tmp_path: Path) -> None:
        _write_tree(tmp_path, {"a.txt": b"a"})
        expected = fingerprint(tmp_path).hash
        (tmp_path / "a.txt").write_bytes(b"tampered")
        result = verify(tmp_path, expected)
        assert result.verified is False
        assert result.expected_hash == expected
