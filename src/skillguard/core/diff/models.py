"""Data models for version-to-version comparison."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from skillguard.core.scanner.models import Finding


@dataclass(frozen=True)
class SensitiveChange:
    """A security-relevant signal in an added or modified file.

    Attributes:
        file: Relative path in the new version.
        type: ``network``, ``credential``, ``exec``, ``filesystem`` or
            ``persistence``.
        description: Short label (``"New network call"``).
        line: 1-based line of the match.
        match_text: The matched text.
        is_new_file: True when the file did not exist in the old version.
    """

    file: str
    type: str
    description: str
    line: int
    match_text: str
    is_new_file: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "type": self.type,
            "description": self.description,
            "line": self.line,
            "match_text": self.match_text,
            "is_new_file": self.is_new_file,
        }


@dataclass
class DiffResult:
    """Comparison of an installed package version with a candidate.

    ``risk_delta`` is ``old_score - new_score``: positive means the new
    version is riskier.
    """

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    new_findings: list[Finding] = field(default_factory=list)
    removed_findings: list[Finding] = field(default_factory=list)
    risk_delta: int = 0
    old_score: int = 100
    new_score: int = 100
    sensitive_changes: list[SensitiveChange] = field(default_factory=list)
    summary: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.modified)

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": self.added,
            "removed": self.removed,
            "modified": self.modified,
            "unchanged": self.unchanged,
            "new_findings": [f.to_dict() for f in self.new_findings],
            "removed_findings": [f.to_dict() for f in self.removed_findings],
            "risk_delta": self.risk_delta,
            "old_score": self.old_score,
            "new_score": self.new_score,
            "sensitive_changes": [c.to_dict() for c in self.sensitive_changes],
            "summary": self.summary,
        }
