"""Data models for the rule scanner: Severity, RiskLevel, Finding, ScanReport.

These are the core data types produced and consumed by the scanning
pipeline. They are decoupled from the engine so that the flow analyzer,
diff scanner, gate and CLI formatters can import them without pulling in
rule loading or file walking.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any


# ---------------------------------------------------------------------------
# Severity: Ordered finding severity levels
# ---------------------------------------------------------------------------


class Severity(IntEnum):
    """Four-level severity scale for findings.

    The integer encoding enables direct comparison: LOW < MEDIUM < HIGH < CRITICAL.
    Serialized form is the lower-case name (``"critical"``).
    """

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, value: str | int | Severity) -> Severity:
        """Parse ``"high"``, ``"HIGH"``, ``3`` or a ``Severity``.

        Raises:
            ValueError: If the value names no severity.
        """
        if isinstance(value, Severity):
            return value
        if isinstance(value, int):
            return cls(value)
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown severity: {value!r}") from None


# ---------------------------------------------------------------------------
# RiskLevel: score bands
# ---------------------------------------------------------------------------


class RiskLevel(str, Enum):
    """Risk band derived from a 0-100 safety score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @classmethod
    def for_score(cls, score: int) -> RiskLevel:
        """Map a score to its band: >=80 LOW, >=50 MEDIUM, >=20 HIGH, else CRITICAL."""
        if score >= 80:
            return cls.LOW
        if score >= 50:
            return cls.MEDIUM
        if score >= 20:
            return cls.HIGH
        return cls.CRITICAL


def score_from_findings(findings: list[Finding], base: int = 100) -> int:
    """Subtract every finding's weight from ``base``, clamped at 0.

    Weights are summed without deduplication: two rules matching the same
    text both count.
    """
    return max(0, base - sum(f.weight for f in findings))


# ---------------------------------------------------------------------------
# Finding: A single rule match
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Finding:
    """One rule match against scanned content.

    Findings are self-contained and immutable, so a scan aborted between
    files still leaves a valid list of findings behind.

    Attributes:
        rule_id: Identifier of the rule (``"EXFIL-001"``) or synthetic flow
            rule (``"FLOW_CRITICAL"``).
        severity: Threat severity.
        category: Rule family (``"exfiltration"``, ``"cross-file-flow"``).
        title: Human-readable rule title.
        file: Relative path of the matching file. Flow findings join the
            chain's files with ``" → "``.
        line: 1-based line number; 0 for flow findings.
        match_text: The matched text, truncated.
        weight: Score penalty contributed by this finding.
    """

    rule_id: str
    severity: Severity
    category: str
    title: str
    file: str
    line: int
    match_text: str
    weight: int

    @property
    def key(self) -> tuple[str, str, int]:
        """Identity used when comparing findings across package versions."""
        return (self.rule_id, self.file, self.line)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rule_id": self.rule_id,
            "severity": self.severity.label,
            "category": self.category,
            "title": self.title,
            "file": self.file,
            "line": self.line,
            "match_text": self.match_text,
            "weight": self.weight,
        }


# ---------------------------------------------------------------------------
# ScanReport: Complete output of one package scan
# ---------------------------------------------------------------------------


@dataclass
class ScanReport:
    """Result of scanning a package.

    Attributes:
        score: 0-100 safety score (100 = no findings).
        risk: Risk band for ``score``.
        findings: All findings, in file then rule order.
        files_scanned: Files whose content was matched.
        files_skipped: Files skipped as oversized, binary or unreadable.
        complete: False if the scan was cancelled part-way.
    """

    score: int
    risk: RiskLevel
    findings: list[Finding] = field(default_factory=list)
    files_scanned: int = 0
    files_skipped: int = 0
    complete: bool = True

    @classmethod
    def from_findings(cls, findings: list[Finding], **kwargs: Any) -> ScanReport:
        score = score_from_findings(findings)
        return cls(score=score, risk=RiskLevel.for_score(score), findings=findings, **kwargs)

    @property
    def max_severity(self) -> Severity | None:
        """Return the highest severity among all findings, or None."""
        if not self.findings:
            return None
        return max(f.severity for f in self.findings)

    def merged_with(self, extra: list[Finding]) -> ScanReport:
        """Return a new report with ``extra`` findings folded into the score."""
        return ScanReport.from_findings(
            [*self.findings, *extra],
            files_scanned=self.files_scanned,
            files_skipped=self.files_skipped,
            complete=self.complete,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "risk": self.risk.value,
            "findings_count": len(self.findings),
            "files_scanned": self.files_scanned,
            "files_skipped": self.files_skipped,
            "complete": self.complete,
            "findings": [f.to_dict() for f in self.findings],
        }
