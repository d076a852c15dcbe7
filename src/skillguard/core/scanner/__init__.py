"""Rule-based scanner producing scored findings for a skill package.

Submodules
----------
- ``models``: Data types (Severity, RiskLevel, Finding, ScanReport).
- ``rules``: Rule and RuleSet, loaded from a YAML data file.
- ``engine``: The SkillScanner class.

All public names are re-exported here::

    from skillguard.core.scanner import SkillScanner, RuleSet, Finding, Severity
"""

from skillguard.core.scanner.models import (
    Finding,
    RiskLevel,
    ScanReport,
    Severity,
    score_from_findings,
)
from skillguard.core.scanner.rules import Rule, RuleSet
from skillguard.core.scanner.engine import SkillScanner

__all__ = [
    "Finding",
    "RiskLevel",
    "Rule",
    "RuleSet",
    "ScanReport",
    "Severity",
    "SkillScanner",
    "score_from_findings",
]
