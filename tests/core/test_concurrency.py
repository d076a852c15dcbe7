"""Concurrent writers against one ledger store and one watch state file.

Each worker is a separate process built with the ``fork`` start method,
so the store lock is the only thing serialising the read-modify-write
cycles.
"""

from __future__ import annotations

import json
import multiprocessing
from pathlib import Path
from typing import Callable

import pytest

from skillguard.core.ledger.ledger import Ledger
from skillguard.core.ledger.models import LedgerEntry
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.watch.engine import Watcher
from skillguard.core.watch.models import AlertType

pytestmark = pytest.mark.skipif(
    "fork" not in multiprocessing.get_all_start_methods(),
    reason="needs the fork start method",
)

WORKERS = 8
ADDS_PER_WORKER = 10


def _add_entries(json_path: Path, md_path: Path, worker: int) -> None:
    ledger = Ledger(json_path, md_path)
    for i in range(ADDS_PER_WORKER):
        ledger.add(LedgerEntry(name=f"skill-{worker}-{i}", hash=f"{worker:04d}{i:04d}"))


def _watch_once(
    skills_dir: Path, state_path: Path, ledger: Ledger, scanner: SkillScanner, results
) -> None:
    report = Watcher(skills_dir, state_path, ledger, scanner).run()
    results.put(sum(a.type is AlertType.UNAPPROVED for a in report.alerts))


def _run_all(ctx, target: Callable, arg_sets: list[tuple]) -> None:
    procs = [ctx.Process(target=target, args=args) for args in arg_sets]
    for proc in procs:
        proc.start()
    for proc in procs:
        proc.join(timeout=60)
    assert [proc.exitcode for proc in procs] == [0] * len(procs)


class TestLedgerWriters:
    def test_no_entry_is_lost(self, tmp_path: Path) -> None:
        json_path = tmp_path / "state" / "ledger.json"
        md_path = tmp_path / "state" / "approved.md"
        ctx = multiprocessing.get_context("fork")

        _run_all(ctx, _add_entries, [(json_path, md_path, w) for w in range(WORKERS)])

        entries = Ledger(json_path, md_path).entries()
        assert len(entries) == WORKERS * ADDS_PER_WORKER
        assert len({e.name for e in entries}) == WORKERS * ADDS_PER_WORKER
        assert md_path.read_text().count("| skill-") == WORKERS * ADDS_PER_WORKER


class TestWatchRuns:
    def test_overlapping_runs_see_each_package_once(
        self,
        tmp_path: Path,
        ledger: Ledger,
        scanner: SkillScanner,
        make_package: Callable[..., Path],
    ) -> None:
        """Serialised cycles report a first sighting exactly once per package."""
        skills_dir = tmp_path / "skills"
        names = [f"pkg{i}" for i in range(5)]
        for name in names:
            make_package(name, {"index.js": f"export const n = '{name}';\n"}, parent=skills_dir)
        state_path = tmp_path / "state" / "watch.json"
        ctx = multiprocessing.get_context("fork")
        results = ctx.Queue()

        _run_all(ctx, _watch_once, [(skills_dir, state_path, ledger, scanner, results)] * 2)

        unapproved = [results.get(timeout=10) for _ in range(2)]
        assert sorted(unapproved) == [0, len(names)]
        state = json.loads(state_path.read_text())
        assert sorted(state["skills"]) == names
