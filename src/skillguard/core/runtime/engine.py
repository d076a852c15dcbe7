"""Static detection of behavior that only turns dangerous after install.

This is not a sandbox: nothing is executed. The monitor looks for code
that downloads and runs payloads, evaluates external data, waits for a
date or counter, detects sandboxes, rewrites itself or beacons home.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from skillguard.core.runtime.patterns import (
    COMMON_FAMILIES,
    EXTENSION_FAMILIES,
    RuntimePattern,
)
from skillguard.core.scanner.models import Severity
from skillguard.core.walk import line_of, read_text, walk_package

logger = logging.getLogger(__name__)

CODE_EXTENSIONS: frozenset[str] = frozenset({
    ".js", ".mjs", ".cjs", ".ts", ".jsx", ".tsx", ".py", ".sh", ".bash",
})

RISK_POINTS: dict[Severity, int] = {
    Severity.CRITICAL: 30,
    Severity.HIGH: 15,
}
DEFAULT_RISK_POINTS = 5
PATTERN_TEXT_LIMIT = 80
_COMMENT_PREFIXES = ("//", "#", "*")


@dataclass(frozen=True)
class RuntimeFinding:
    """One runtime-risk match.

    Attributes:
        type: Pattern family (``"code_download"``, ``"c2_pattern"``, ...).
        severity: Severity of the matched pattern.
        file: Relative path of the file.
        line: 1-based line of the match start.
        pattern: Matched text, truncated to 80 characters.
        description: What the pattern indicates.
    """

    type: str
    severity: Severity
    file: str
    line: int
    pattern: str
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "severity": self.severity.label,
            "file": self.file,
            "line": self.line,
            "pattern": self.pattern,
            "description": self.description,
        }


@dataclass
class RuntimeReport:
    """Runtime findings plus a 0-100 risk score (higher is riskier)."""

    findings: list[RuntimeFinding] = field(default_factory=list)
    risk_score: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "risk_score": self.risk_score,
            "findings": [f.to_dict() for f in self.findings],
        }


def risk_score(findings: list[RuntimeFinding]) -> int:
    """Sum 30/15/5 points per critical/high/other finding, capped at 100."""
    total = sum(RISK_POINTS.get(f.severity, DEFAULT_RISK_POINTS) for f in findings)
    return min(100, total)


def _is_comment(line: str) -> bool:
    return line.strip().startswith(_COMMENT_PREFIXES)


def match_family(
    content: str,
    file: str,
    family: str,
    patterns: list[RuntimePattern],
) -> list[RuntimeFinding]:
    """Apply one pattern family to ``content``.

    Matches whose first line is a comment line are dropped.
    """
    lines = content.split("\n")
    findings: list[RuntimeFinding] = []
    for regex, severity, description in patterns:
        for match in regex.finditer(content):
            line_no = line_of(content, match.start())
            if _is_comment(lines[line_no - 1]):
                continue
            findings.append(RuntimeFinding(
                type=family,
                severity=severity,
                file=file,
                line=line_no,
                pattern=match.group(0)[:PATTERN_TEXT_LIMIT],
                description=description,
            ))
    return findings


class RuntimeMonitor:
    """Scan a package's code files for runtime-dangerous patterns."""

    def analyze_content(self, content: str, file: str) -> list[RuntimeFinding]:
        """Run every applicable family over one file's text."""
        findings: list[RuntimeFinding] = []
        for family, patterns in COMMON_FAMILIES:
            findings.extend(match_family(content, file, family, patterns))
        extra = EXTENSION_FAMILIES.get(Path(file).suffix.lower())
        if extra is not None:
            findings.extend(match_family(content, file, *extra))
        return findings

    def analyze(self, path: str | Path) -> RuntimeReport:
        """Analyze every code file of a package.

        Args:
            path: Package root directory.

        Returns:
            A ``RuntimeReport``; unreadable files are skipped.
        """
        findings: list[RuntimeFinding] = []
        for item in walk_package(path, CODE_EXTENSIONS):
            content = read_text(item.path)
            if content is None:
                continue
            findings.extend(self.analyze_content(content, item.rel_path))
        return RuntimeReport(findings=findings, risk_score=risk_score(findings))
