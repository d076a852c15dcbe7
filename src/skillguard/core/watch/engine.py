"""Post-install drift detection over the installed skills directory.

A watch cycle compares every installed package with what the previous
cycle recorded:

* unseen package: scan it, alert if it is unapproved or dangerous;
* same hash: nothing to do;
* new hash: alert ``modified``, rescan, alert on a score drop, on flow
  chains and on a hash the ledger has not approved.

Packages recorded before but gone from disk raise a ``removed`` alert and
leave the state. The whole cycle runs under the state file's lock and the
state is written back atomically.

Designed to run from cron or any external scheduler.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from skillguard.config import ScanSettings
from skillguard.core.flow.engine import FlowAnalyzer
from skillguard.core.hasher import fingerprint
from skillguard.core.ledger.ledger import Ledger
from skillguard.core.ledger.models import utc_now
from skillguard.core.manifest import is_package, skill_name
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.storage import atomic_write_json, read_json, state_lock
from skillguard.core.watch.models import (
    AlertSeverity,
    AlertType,
    SkillState,
    WatchAlert,
    WatchReport,
    WatchState,
)

logger = logging.getLogger(__name__)

DANGEROUS_SCORE = 50
SCORE_DROP_ALERT = 10
SCORE_DROP_CRITICAL = 30


@dataclass(frozen=True)
class InstalledSkill:
    """A package found under the skills directory.

    Attributes:
        key: Directory key relative to the skills directory
            (``"weather"`` or ``"suite/weather"``).
        name: Manifest name, used for ledger lookups.
        path: Package root.
    """

    key: str
    name: str
    path: Path


class Watcher:
    """Reconcile installed packages against stored state and the ledger.

    Args:
        skills_dir: Directory holding installed packages.
        state_path: Watch state JSON file.
        ledger: Approval ledger.
        scanner: Rule scanner.
        settings: Scan toggles; flow analysis of modified packages is
            skipped when ``enable_flow_analysis`` is off.
        flow_analyzer: Flow analyzer run on modified packages.
    """

    def __init__(
        self,
        skills_dir: str | Path,
        state_path: str | Path,
        ledger: Ledger,
        scanner: SkillScanner,
        settings: ScanSettings | None = None,
        flow_analyzer: FlowAnalyzer | None = None,
    ) -> None:
        self.skills_dir = Path(skills_dir)
        self.state_path = Path(state_path)
        self.ledger = ledger
        self.scanner = scanner
        self.settings = settings or ScanSettings()
        self.flow_analyzer = flow_analyzer or FlowAnalyzer()

    # -- State ------------------------------------------------------------

    def load_state(self) -> WatchState:
        """Read the stored state; missing or corrupt files give an empty one."""
        return WatchState.from_dict(read_json(self.state_path))

    def _save_state(self, state: WatchState) -> None:
        atomic_write_json(self.state_path, state.to_dict())

    # -- Discovery --------------------------------------------------------

    def discover_skills(self) -> list[InstalledSkill]:
        """Find installed packages, one level of nesting deep.

        A directory with a manifest is a package. A directory without one
        is searched once more for child packages, keyed ``parent/child``.
        """
        try:
            children = sorted(p for p in self.skills_dir.iterdir() if p.is_dir())
        except OSError:
            logger.debug("Cannot list skills directory %s", self.skills_dir, exc_info=True)
            return []

        skills: list[InstalledSkill] = []
        for child in children:
            if child.name.startswith("."):
                continue
            if is_package(child):
                skills.append(InstalledSkill(child.name, skill_name(child), child))
                continue
            try:
                nested = sorted(p for p in child.iterdir() if p.is_dir())
            except OSError:
                continue
            for sub in nested:
                if is_package(sub):
                    key = f"{child.name}/{sub.name}"
                    skills.append(InstalledSkill(key, skill_name(sub), sub))
        return skills

    # -- Cycle ------------------------------------------------------------

    def run(self) -> WatchReport:
        """Run one watch cycle and persist the updated state.

        Returns:
            A ``WatchReport``.

        Raises:
            StateError: If the state file cannot be written.
        """
        with state_lock(self.state_path):
            state = self.load_state()
            skills = self.discover_skills()
            report = WatchReport(scanned=len(skills))

            for skill in skills:
                alerts = self._check(skill, state)
                if alerts:
                    report.alerts.extend(alerts)
                else:
                    report.clean += 1

            present = {s.key for s in skills}
            for key in [k for k in state.skills if k not in present]:
                report.alerts.append(WatchAlert(
                    type=AlertType.REMOVED,
                    severity=AlertSeverity.INFO,
                    skill=key,
                    message=f'Skill "{key}" was removed from disk.',
                ))
                del state.skills[key]

            state.last_run_at = utc_now()
            report.timestamp = state.last_run_at
            self._save_state(state)

        logger.info(
            "Watch cycle: %d scanned, %d clean, %d alerts",
            report.scanned, report.clean, len(report.alerts),
        )
        return report

    def _check(self, skill: InstalledSkill, state: WatchState) -> list[WatchAlert]:
        alerts: list[WatchAlert] = []
        fp = fingerprint(skill.path)
        previous = state.skills.get(skill.key)

        if previous is None:
            if not self.ledger.is_approved(skill.name).approved:
                alerts.append(WatchAlert(
                    type=AlertType.UNAPPROVED,
                    severity=AlertSeverity.HIGH,
                    skill=skill.key,
                    message=f'Skill "{skill.key}" is installed but NOT in the approved ledger.',
                    details={"hash": fp.hash, "file_count": fp.file_count},
                ))
            report = self.scanner.scan(skill.path)
            state.skills[skill.key] = SkillState(
                fp.hash, report.score, len(report.findings), utc_now()
            )
            if report.score < DANGEROUS_SCORE:
                alerts.append(WatchAlert(
                    type=AlertType.NEW_FINDINGS,
                    severity=AlertSeverity.CRITICAL,
                    skill=skill.key,
                    message=(
                        f'New skill "{skill.key}" has dangerous score: {report.score}/100 '
                        f"({len(report.findings)} findings)."
                    ),
                    details={
                        "score": report.score,
                        "risk": report.risk.value,
                        "findings": len(report.findings),
                    },
                ))
            return alerts

        if fp.hash == previous.hash:
            return alerts

        alerts.append(WatchAlert(
            type=AlertType.MODIFIED,
            severity=AlertSeverity.HIGH,
            skill=skill.key,
            message=f'Skill "{skill.key}" was modified since last scan. Hash changed.',
            details={"previous_hash": previous.hash[:16], "current_hash": fp.hash[:16]},
        ))

        report = self.scanner.scan(skill.path)
        delta = previous.score - report.score
        if delta > SCORE_DROP_ALERT:
            alerts.append(WatchAlert(
                type=AlertType.SCORE_DROP,
                severity=AlertSeverity.CRITICAL if delta > SCORE_DROP_CRITICAL else AlertSeverity.HIGH,
                skill=skill.key,
                message=(
                    f'Skill "{skill.key}" score dropped: {previous.score} → {report.score} '
                    f"(Δ{delta})."
                ),
                details={
                    "previous_score": previous.score,
                    "current_score": report.score,
                    "delta": delta,
                    "new_findings": len(report.findings) - previous.findings_count,
                },
            ))

        if self.settings.enable_flow_analysis:
            flow = self.flow_analyzer.analyze(skill.path)
            if flow.chains:
                alerts.append(WatchAlert(
                    type=AlertType.NEW_FINDINGS,
                    severity=AlertSeverity.CRITICAL,
                    skill=skill.key,
                    message=(
                        f'Skill "{skill.key}" has {len(flow.chains)} cross-file data flow '
                        "chain(s) after modification."
                    ),
                    details={"chains": [c.description for c in flow.chains]},
                ))

        state.skills[skill.key] = SkillState(
            fp.hash, report.score, len(report.findings), utc_now()
        )

        if not self.ledger.is_approved(skill.name, fp.hash).hash_match:
            alerts.append(WatchAlert(
                type=AlertType.UNAPPROVED,
                severity=AlertSeverity.HIGH,
                skill=skill.key,
                message=(
                    f'Modified version of "{skill.key}" is NOT in the approved ledger. '
                    "Re-approval needed."
                ),
            ))
        return alerts


_SEVERITY_HEADINGS = [
    (AlertSeverity.CRITICAL, "CRITICAL"),
    (AlertSeverity.HIGH, "HIGH"),
    (AlertSeverity.MEDIUM, "MEDIUM"),
    (AlertSeverity.INFO, "INFO"),
]


def format_alerts(report: WatchReport) -> str:
    """Plain-text digest of a watch cycle, grouped by severity."""
    day = report.timestamp.split("T")[0] if report.timestamp else "never"
    lines = [
        f"SkillGuard Watch Report: {day}",
        f"   Scanned: {report.scanned} skills | Clean: {report.clean} "
        f"| Alerts: {len(report.alerts)}",
    ]
    if not report.alerts:
        lines.append("   All skills verified clean.")
        return "\n".join(lines)

    lines.append("")
    for severity, heading in _SEVERITY_HEADINGS:
        group = [a for a in report.alerts if a.severity is severity]
        if group:
            lines.append(f"   {heading}:")
            lines.extend(f"      {a.message}" for a in group)
    return "\n".join(lines)
