"""Pre-install enforcement: ALLOW, REVIEW or BLOCK a candidate package.

``Gate.check_install`` runs in a fixed order:

1. fingerprint the package and resolve its name;
2. if the ledger's latest entry approves this exact hash, ALLOW at once
   without scanning;
3. otherwise scan, run flow analysis and, when an installed copy is
   given, diff against it;
4. apply ``decide`` to the adjusted score.

``decide`` is a pure function of the score, the hash-changed flag and the
policy, so the precedence can be tested without touching the filesystem.
"""

from __future__ import annotations

import logging
from pathlib import Path

from skillguard.config import GatePolicy, ScanSettings
from skillguard.core.diff.engine import DiffScanner
from skillguard.core.flow.engine import FlowAnalyzer
from skillguard.core.gate.models import Decision, GateDecision, Verdict
from skillguard.core.hasher import fingerprint
from skillguard.core.ledger.ledger import Ledger
from skillguard.core.ledger.models import Approver, EntryStatus, LedgerEntry
from skillguard.core.manifest import read_manifest
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.scanner.models import Finding, RiskLevel, score_from_findings

logger = logging.getLogger(__name__)


def decide(adjusted_score: int, hash_changed: bool, policy: GatePolicy) -> Verdict:
    """Apply the gate policy to an adjusted score.

    Precedence, first match wins:

    1. hash changed from a previously approved version → REVIEW;
    2. score below ``review_threshold`` → BLOCK;
    3. ``require_approval_for_all`` → REVIEW;
    4. score at or above ``auto_allow_threshold`` → ALLOW;
    5. otherwise → REVIEW.
    """
    if hash_changed:
        return Verdict(
            Decision.REVIEW,
            "Previously approved version modified (hash changed). Re-review required.",
            True,
        )
    if adjusted_score < policy.review_threshold:
        return Verdict(
            Decision.BLOCK,
            f"Score {adjusted_score}/100 is below review threshold "
            f"({policy.review_threshold}). Too risky to install.",
            False,
        )
    if policy.require_approval_for_all:
        return Verdict(
            Decision.REVIEW,
            f"Policy: all installs require human approval. Score: {adjusted_score}/100.",
            True,
        )
    if adjusted_score >= policy.auto_allow_threshold:
        return Verdict(
            Decision.ALLOW,
            f"Score {adjusted_score}/100 meets auto-allow threshold "
            f"({policy.auto_allow_threshold}).",
            False,
        )
    return Verdict(
        Decision.REVIEW,
        f"Score {adjusted_score}/100 requires review (between "
        f"{policy.review_threshold}-{policy.auto_allow_threshold}).",
        True,
    )


class Gate:
    """Install gate combining scanner, flow analysis and the ledger.

    Args:
        scanner: Rule scanner.
        ledger: Approval ledger consulted and updated by the gate.
        policy: Decision thresholds.
        settings: Scan toggles (flow analysis, diff scan).
        flow_analyzer: Cross-file analyzer; a default one is built if None.
        diff_scanner: Version comparer; built from ``scanner`` if None.
    """

    def __init__(
        self,
        scanner: SkillScanner,
        ledger: Ledger,
        policy: GatePolicy | None = None,
        settings: ScanSettings | None = None,
        flow_analyzer: FlowAnalyzer | None = None,
        diff_scanner: DiffScanner | None = None,
    ) -> None:
        self.scanner = scanner
        self.ledger = ledger
        self.policy = policy or GatePolicy()
        self.settings = settings or ScanSettings()
        self.flow_analyzer = flow_analyzer or FlowAnalyzer()
        self.diff_scanner = diff_scanner or DiffScanner(scanner)

    def check_install(
        self,
        path: str | Path,
        name: str | None = None,
        source: str | None = None,
        installed_path: str | Path | None = None,
    ) -> GateDecision:
        """Decide whether the package at ``path`` may be installed.

        Args:
            path: Candidate package root.
            name: Skill name override; read from the manifest if None.
            source: Origin recorded on auto-logged ledger entries.
            installed_path: Currently installed version to diff against.

        Returns:
            A ``GateDecision``. A BLOCK is also appended to the ledger as
            an ``auto`` blocked entry.
        """
        fp = fingerprint(path)
        manifest = read_manifest(path)
        skill_name = name or manifest.name

        status = self.ledger.is_approved(skill_name, fp.hash)
        if status.approved and status.hash_match and status.entry is not None:
            entry = status.entry
            approved_on = entry.date.split("T")[0] if entry.date else "unknown date"
            logger.debug("%s: approved hash %s, skipping scan", skill_name, fp.short)
            return GateDecision(
                decision=Decision.ALLOW,
                score=entry.score,
                risk=RiskLevel(entry.risk) if entry.risk in RiskLevel.__members__ else RiskLevel.LOW,
                hash=fp.hash,
                reason=f"Previously approved ({approved_on}). Hash matches.",
                requires_approval=False,
                name=skill_name,
                version=manifest.version,
                previously_approved=True,
                file_count=fp.file_count,
                total_size=fp.total_size,
            )

        report = self.scanner.scan(path)
        flow_findings: list[Finding] = []
        if self.settings.enable_flow_analysis:
            flow_findings = self.flow_analyzer.analyze(path).findings
        adjusted = score_from_findings(flow_findings, base=report.score)

        diff_result = None
        if installed_path is not None and self.settings.enable_diff_scan:
            diff_result = self.diff_scanner.diff(installed_path, path)

        hash_changed = status.previously_approved and not status.hash_match
        verdict = decide(adjusted, hash_changed, self.policy)
        result = GateDecision(
            decision=verdict.decision,
            score=adjusted,
            risk=RiskLevel.for_score(adjusted),
            hash=fp.hash,
            reason=verdict.reason,
            requires_approval=verdict.requires_approval,
            name=skill_name,
            version=manifest.version,
            findings=report.findings,
            flow_findings=flow_findings,
            diff_result=diff_result,
            file_count=fp.file_count,
            total_size=fp.total_size,
        )

        if verdict.decision is Decision.BLOCK:
            self.ledger.add(LedgerEntry(
                name=skill_name,
                version=manifest.version,
                source=source or "unknown",
                score=adjusted,
                risk=result.risk.value,
                hash=fp.hash,
                status=EntryStatus.BLOCKED,
                approver=Approver.AUTO,
                findings_count=result.findings_count,
            ))
        logger.info("%s: %s (score %d)", skill_name, verdict.decision.value, adjusted)
        return result

    def approve(
        self,
        path: str | Path,
        name: str,
        prior: GateDecision,
        purpose: str | None = None,
        source: str | None = None,
    ) -> LedgerEntry:
        """Record a human approval using a prior check's hash and score.

        The package is not rescanned: the approval covers exactly what the
        reviewer saw in ``prior``.
        """
        version = prior.version if prior.version != "unknown" else read_manifest(path).version
        return self.ledger.add(LedgerEntry(
            name=name,
            version=version,
            source=source or "unknown",
            score=prior.score,
            risk=prior.risk.value,
            hash=prior.hash,
            status=EntryStatus.APPROVED,
            approver=Approver.HUMAN,
            purpose=purpose or "",
            findings_count=prior.findings_count,
        ))
