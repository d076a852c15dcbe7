"""Data models for the approval ledger."""

from __future__ import annotations

import re
from dataclasses import dataclass, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any

SCHEMA_VERSION = 1

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class EntryStatus(str, Enum):
    APPROVED = "approved"
    BLOCKED = "blocked"
    REVOKED = "revoked"


class Approver(str, Enum):
    AUTO = "auto"
    HUMAN = "human"


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass
class LedgerEntry:
    """One approve/block decision for a package version.

    Entries are append-only. The only in-place change ever made is
    flipping ``approved`` to ``revoked`` (and stamping ``revoked_at``).

    Attributes:
        name: Skill name.
        version: Declared version or ``"unknown"``.
        source: Where the package came from (``"local"``, a hub slug).
        score: Adjusted scan score at decision time.
        risk: Risk band for ``score``.
        hash: Package fingerprint the decision applies to.
        date: UTC ISO-8601 timestamp, stamped on ``Ledger.add``.
        status: ``approved``, ``blocked`` or ``revoked``.
        approver: ``auto`` (Gate) or ``human``.
        purpose: Optional note on why the skill was installed.
        findings_count: Number of findings at scan time.
        revoked_at: When the approval was revoked.
    """

    name: str
    version: str = "unknown"
    source: str = "local"
    score: int = 0
    risk: str = "LOW"
    hash: str = ""
    date: str = ""
    status: EntryStatus = EntryStatus.APPROVED
    approver: Approver = Approver.HUMAN
    purpose: str | None = None
    findings_count: int | None = None
    revoked_at: str | None = None

    @property
    def short_hash(self) -> str:
        return self.hash[:8] if self.hash else "n/a"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "source": self.source,
            "score": self.score,
            "risk": self.risk,
            "hash": self.hash,
            "date": self.date,
            "status": self.status.value,
            "approver": self.approver.value,
        }
        for optional in ("purpose", "findings_count", "revoked_at"):
            value = getattr(self, optional)
            if value is not None:
                data[optional] = value
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> LedgerEntry:
        """Build an entry from stored JSON, accepting camelCase keys.

        Raises:
            ValueError: If the entry has no name or an unknown status.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in raw.items():
            name = _CAMEL_RE.sub("_", str(key)).lower()
            if name in known:
                values[name] = value
        if not values.get("name"):
            raise ValueError("ledger entry has no name")
        values["status"] = EntryStatus(values.get("status", "approved"))
        values["approver"] = Approver(values.get("approver") or "auto")
        return cls(**values)


@dataclass(frozen=True)
class ApprovalStatus:
    """Result of ``Ledger.is_approved``.

    Attributes:
        approved: True iff the latest entry for the name is approved and,
            when a hash was supplied, its hash matches.
        entry: The latest entry for the name (any status), if any.
        hash_match: Whether the supplied hash equals the approved entry's
            hash; None when no hash was supplied or nothing is approved.
    """

    approved: bool
    entry: LedgerEntry | None = None
    hash_match: bool | None = None

    @property
    def previously_approved(self) -> bool:
        """An approved entry exists for the name, whatever its hash."""
        return self.entry is not None and self.entry.status is EntryStatus.APPROVED


@dataclass(frozen=True)
class LedgerStats:
    total: int
    approved: int
    blocked: int
    revoked: int

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "approved": self.approved,
            "blocked": self.blocked,
            "revoked": self.revoked,
        }
