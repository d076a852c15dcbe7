"""Gate decision types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from skillguard.core.diff.models import DiffResult
from skillguard.core.scanner.models import Finding, RiskLevel


class Decision(str, Enum):
    """Outcome of an install check."""

    ALLOW = "ALLOW"
    REVIEW = "REVIEW"
    BLOCK = "BLOCK"


@dataclass(frozen=True)
class Verdict:
    """The policy part of a decision, before scan details are attached."""

    decision: Decision
    reason: str
    requires_approval: bool


@dataclass
class GateDecision:
    """Everything the Gate knows after checking a candidate package.

    Attributes:
        decision: ALLOW, REVIEW or BLOCK.
        score: Adjusted score (scanner score minus flow-chain weights).
        risk: Risk band of the adjusted score.
        findings: Scanner findings (empty on the approved fast path).
        flow_findings: Cross-file flow findings.
        requires_approval: Whether a human must approve before install.
        hash: Fingerprint of the candidate.
        previously_approved: True only on the approved-hash fast path.
        reason: Human-readable explanation.
        diff_result: Comparison with the installed version, when requested.
        name: Resolved skill name.
        version: Declared version, ``"unknown"`` when absent.
        file_count: Files in the fingerprint.
        total_size: Bytes in the fingerprint.
    """

    decision: Decision
    score: int
    risk: RiskLevel
    hash: str
    reason: str
    requires_approval: bool
    name: str
    version: str = "unknown"
    findings: list[Finding] = field(default_factory=list)
    flow_findings: list[Finding] = field(default_factory=list)
    previously_approved: bool = False
    diff_result: DiffResult | None = None
    file_count: int = 0
    total_size: int = 0

    @property
    def findings_count(self) -> int:
        return len(self.findings) + len(self.flow_findings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "decision": self.decision.value,
            "name": self.name,
            "version": self.version,
            "score": self.score,
            "risk": self.risk.value,
            "hash": self.hash,
            "reason": self.reason,
            "requires_approval": self.requires_approval,
            "previously_approved": self.previously_approved,
            "file_count": self.file_count,
            "total_size": self.total_size,
            "findings": [f.to_dict() for f in self.findings],
            "flow_findings": [f.to_dict() for f in self.flow_findings],
            "diff_result": self.diff_result.to_dict() if self.diff_result else None,
        }
