"""Shared fixtures for skillguard tests.

Most tests run against a small, predictable rule set instead of the
bundled catalog so that scores can be asserted exactly. Marker words in
package files (``EVIL_MARKER``, ``SUSPICIOUS_CALL`` ...) trigger one rule
each.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from skillguard.core.ledger.ledger import Ledger
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.scanner.rules import RuleSet

TEST_RULES_YAML = """\
version: test-1
rules:
  - id: TEST-CRIT
    title: Evil marker
    category: test
    severity: critical
    weight: 25
    pattern: EVIL_MARKER
  - id: TEST-HIGH
    title: Suspicious call
    category: test
    severity: high
    weight: 15
    pattern: SUSPICIOUS_CALL
  - id: TEST-MED
    title: Note worthy
    category: test
    severity: medium
    weight: 8
    pattern: NOTE_ME
  - id: TEST-BIG
    title: Heavy danger
    category: test
    severity: critical
    weight: 45
    pattern: DANGER_45
"""

PackageFactory = Callable[..., Path]


@pytest.fixture
def rules_file(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Write the predictable test rule set to disk."""
    path = tmp_path_factory.mktemp("rules") / "test-rules.yaml"
    path.write_text(TEST_RULES_YAML)
    return path


@pytest.fixture
def test_rules(rules_file: Path) -> RuleSet:
    return RuleSet.load(rules_file)


@pytest.fixture
def scanner(test_rules: RuleSet) -> SkillScanner:
    """Scanner over the test rule set."""
    return SkillScanner(test_rules)


@pytest.fixture
def ledger(tmp_path: Path) -> Ledger:
    """Empty ledger stored under tmp_path."""
    return Ledger(tmp_path / "state" / "ledger.json", tmp_path / "state" / "approved.md")


@pytest.fixture
def make_package(tmp_path: Path) -> PackageFactory:
    """Return a factory writing skill packages under tmp_path.

    Usage::

        pkg = make_package("weather", {"index.js": "fetch(url)"})

    A ``SKILL.md`` with frontmatter ``name`` (and ``version`` if given) is
    added unless ``files`` already provides one.
    """

    def _make(
        name: str,
        files: dict[str, str | bytes] | None = None,
        *,
        parent: Path | None = None,
        version: str | None = None,
    ) -> Path:
        root = (parent or tmp_path / "packages") / name
        root.mkdir(parents=True, exist_ok=True)
        files = dict(files or {})
        if "SKILL.md" not in files:
            header = f"---\nname: {name}\n"
            if version is not None:
                header += f"version: {version}\n"
            files["SKILL.md"] = header + "description: test skill\n---\n\nDoes helpful things.\n"
        for rel_path, content in files.items():
            target = root / rel_path
            target.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                target.write_bytes(content)
            else:
                target.write_text(content)
        return root

    return _make
