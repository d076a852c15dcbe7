"""Watcher state and alert types."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

STATE_SCHEMA_VERSION = 1

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class AlertType(str, Enum):
    MODIFIED = "modified"
    NEW_FINDINGS = "new_findings"
    SCORE_DROP = "score_drop"
    UNAPPROVED = "unapproved"
    NEW_SKILL = "new_skill"
    REMOVED = "removed"


class AlertSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    INFO = "info"


@dataclass(frozen=True)
class WatchAlert:
    """One condition the watch cycle wants a human to look at."""

    type: AlertType
    severity: AlertSeverity
    skill: str
    message: str
    details: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "type": self.type.value,
            "severity": self.severity.value,
            "skill": self.skill,
            "message": self.message,
        }
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass
class SkillState:
    """Last observed state of one installed package."""

    hash: str
    score: int
    findings_count: int
    last_scanned_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "score": self.score,
            "findings_count": self.findings_count,
            "last_scanned_at": self.last_scanned_at,
        }

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> SkillState:
        values = {_CAMEL_RE.sub("_", str(k)).lower(): v for k, v in raw.items()}
        return cls(
            hash=str(values["hash"]),
            score=int(values["score"]),
            findings_count=int(values.get("findings_count", 0)),
            last_scanned_at=str(values.get("last_scanned_at", "")),
        )


@dataclass
class WatchState:
    """Persistent state carried between watch cycles."""

    last_run_at: str | None = None
    skills: dict[str, SkillState] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "schema_version": STATE_SCHEMA_VERSION,
            "last_run_at": self.last_run_at,
            "skills": {key: s.to_dict() for key, s in self.skills.items()},
        }

    @classmethod
    def from_dict(cls, raw: Any) -> WatchState:
        """Decode a stored state; anything unusable yields an empty state."""
        if not isinstance(raw, dict):
            if raw is not None:
                logger.warning("Unrecognized watch state layout; starting fresh")
            return cls()
        skills: dict[str, SkillState] = {}
        raw_skills = raw.get("skills")
        if isinstance(raw_skills, dict):
            for key, value in raw_skills.items():
                try:
                    skills[str(key)] = SkillState.from_dict(value)
                except (KeyError, TypeError, ValueError, AttributeError):
                    logger.warning("Dropping malformed watch state for %s", key)
        last_run = raw.get("last_run_at", raw.get("lastRunAt"))
        return cls(last_run_at=last_run, skills=skills)


@dataclass
class WatchReport:
    """Outcome of one watch cycle.

    Attributes:
        alerts: Alerts in discovery order, then removals.
        scanned: Packages found on disk.
        clean: Packages that produced no alert.
        timestamp: UTC ISO-8601 time the cycle finished.
    """

    alerts: list[WatchAlert] = field(default_factory=list)
    scanned: int = 0
    clean: int = 0
    timestamp: str = ""

    @property
    def has_critical(self) -> bool:
        return any(a.severity is AlertSeverity.CRITICAL for a in self.alerts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "scanned": self.scanned,
            "clean": self.clean,
            "alerts": [a.to_dict() for a in self.alerts],
        }
