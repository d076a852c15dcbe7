"""Compare two versions of a package for security-relevant changes.

The comparison has three parts:

* a file inventory diff by per-file SHA-256 (added, removed, modified,
  unchanged),
* a finding diff by running the scanner over both trees and keying
  findings on ``(rule_id, file, line)``,
* a quick signal pass over added and modified files that flags new network,
  credential, exec, file-write and scheduling code even when the rule
  catalog finds nothing new.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from pathlib import Path

from skillguard.core.diff.models import DiffResult, SensitiveChange
from skillguard.core.hasher import file_digests
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.scanner.models import Finding, Severity
from skillguard.core.walk import line_of, read_text

logger = logging.getLogger(__name__)

SIGNAL_EXTENSIONS: frozenset[str] = frozenset({".js", ".ts", ".mjs", ".cjs", ".py", ".sh", ".md"})

SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str, str]] = [
    (
        re.compile(r"\bfetch\s*\(|axios\.\w+\(|https?://(?!localhost)"),
        "network",
        "New network call",
    ),
    (
        re.compile(r"process\.env|\.env\b|api[_-]?key|secret|token", re.IGNORECASE),
        "credential",
        "New credential access",
    ),
    (
        re.compile(r"\beval\b|\bexec\b|\bspawn\b|\bchild_process"),
        "exec",
        "New code execution",
    ),
    (
        re.compile(r"\bwriteFile\b|\bcreateWriteStream\b|fs\.\w*[Ww]rite"),
        "filesystem",
        "New file write",
    ),
    (
        re.compile(r"cron|schedule|setTimeout.*\d{4,}|setInterval"),
        "persistence",
        "New persistence/scheduling",
    ),
]


def sensitive_changes(
    root: str | Path,
    added: list[str],
    modified: list[str],
) -> list[SensitiveChange]:
    """Scan added and modified files of ``root`` for sensitive signals."""
    root_path = Path(root)
    new_files = set(added)
    changes: list[SensitiveChange] = []
    for rel_path in [*added, *modified]:
        if Path(rel_path).suffix.lower() not in SIGNAL_EXTENSIONS:
            continue
        content = read_text(root_path / rel_path)
        if content is None:
            continue
        for pattern, kind, description in SENSITIVE_PATTERNS:
            for match in pattern.finditer(content):
                changes.append(SensitiveChange(
                    file=rel_path,
                    type=kind,
                    description=description,
                    line=line_of(content, match.start()),
                    match_text=match.group(0),
                    is_new_file=rel_path in new_files,
                ))
    return changes


def build_summary(result: DiffResult) -> str:
    """Render the short multi-line digest shown by ``skillguard diff``."""
    lines = [
        f"Files: +{len(result.added)} added, -{len(result.removed)} removed, "
        f"~{len(result.modified)} modified, {len(result.unchanged)} unchanged",
    ]
    if result.risk_delta > 0:
        trend = f"-{result.risk_delta}"
    elif result.risk_delta < 0:
        trend = f"+{-result.risk_delta}"
    else:
        trend = "no change"
    lines.append(f"Score: {result.old_score} → {result.new_score} ({trend})")

    if result.new_findings:
        lines.append(f"New findings: {len(result.new_findings)}")
        critical = sum(f.severity is Severity.CRITICAL for f in result.new_findings)
        high = sum(f.severity is Severity.HIGH for f in result.new_findings)
        if critical:
            lines.append(f"  {critical} CRITICAL")
        if high:
            lines.append(f"  {high} HIGH")

    if result.removed_findings:
        lines.append(f"Resolved findings: {len(result.removed_findings)}")

    if result.sensitive_changes:
        by_type = Counter(c.type for c in result.sensitive_changes)
        parts = ", ".join(f"{count} {kind}" for kind, count in by_type.items())
        lines.append(f"Sensitive changes: {parts}")

    return "\n".join(lines)


def _missing(findings: list[Finding], other: list[Finding]) -> list[Finding]:
    keys = {f.key for f in other}
    return [f for f in findings if f.key not in keys]


class DiffScanner:
    """Compare an installed package with a candidate version.

    Args:
        scanner: Scanner used on both trees.
    """

    def __init__(self, scanner: SkillScanner) -> None:
        self.scanner = scanner

    def diff(self, old_path: str | Path, new_path: str | Path) -> DiffResult:
        """Compare ``old_path`` (installed) with ``new_path`` (candidate).

        Returns:
            A ``DiffResult``. Comparing a tree with itself yields no file
            changes, no finding changes and ``risk_delta == 0``.
        """
        old_files = file_digests(old_path)
        new_files = file_digests(new_path)

        result = DiffResult()
        for rel_path, digest in new_files.items():
            if rel_path not in old_files:
                result.added.append(rel_path)
            elif old_files[rel_path] != digest:
                result.modified.append(rel_path)
            else:
                result.unchanged.append(rel_path)
        result.removed = [p for p in old_files if p not in new_files]

        old_report = self.scanner.scan(old_path)
        new_report = self.scanner.scan(new_path)
        result.new_findings = _missing(new_report.findings, old_report.findings)
        result.removed_findings = _missing(old_report.findings, new_report.findings)
        result.old_score = old_report.score
        result.new_score = new_report.score
        result.risk_delta = old_report.score - new_report.score

        result.sensitive_changes = sensitive_changes(new_path, result.added, result.modified)
        result.summary = build_summary(result)
        logger.debug("Diff %s -> %s: delta %d", old_path, new_path, result.risk_delta)
        return result
