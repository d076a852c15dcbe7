"""Durable record of approve, block and revoke decisions.

The JSON store is authoritative::

    {
      "schema_version": 1,
      "entries": [ {"name": "weather", "hash": "...", "status": "approved", ...} ]
    }

A bare JSON list (the layout written before the schema field existed) is
read as a version-0 store and upgraded on the next write. The Markdown
table is a derived view, regenerated in full from the entries on every
save by ``render_markdown``.

Every mutation reloads the store inside an advisory lock, applies the
change and writes both files atomically, so concurrent CLI invocations
cannot drop each other's entries.
"""

from __future__ import annotations

import logging
from pathlib import Path

from skillguard.core.ledger.models import (
    SCHEMA_VERSION,
    ApprovalStatus,
    EntryStatus,
    LedgerEntry,
    LedgerStats,
    utc_now,
)
from skillguard.core.storage import atomic_write_json, atomic_write_text, read_json, state_lock

logger = logging.getLogger(__name__)

_STATUS_ICONS = {
    EntryStatus.APPROVED: "✅",
    EntryStatus.BLOCKED: "🔴",
    EntryStatus.REVOKED: "⚪",
}


def render_markdown(entries: list[LedgerEntry]) -> str:
    """Render entries as the human-readable approved-skills log.

    Pure function: the same entries always render to the same text.
    """
    lines = [
        "# Approved Skills Log",
        "",
        "All skills must pass SkillGuard scan before installation. Log every install here.",
        "",
        "| Date | Skill | Source | Score | Status | Approver | Hash |",
        "|------|-------|--------|-------|--------|----------|------|",
    ]
    for e in entries:
        date = e.date.split("T")[0] if e.date else "unknown"
        icon = _STATUS_ICONS[e.status]
        lines.append(
            f"| {date} | {e.name} | {e.source or 'unknown'} | {e.score}/100 "
            f"| {icon} {e.status.value} | {e.approver.value} | {e.short_hash} |"
        )
    lines.append("")
    return "\n".join(lines)


def parse_store(data: object, origin: Path) -> list[LedgerEntry]:
    """Decode a loaded JSON document into entries.

    Unknown shapes and malformed entries are logged and dropped; they never
    make the ledger unusable.
    """
    if data is None:
        return []
    if isinstance(data, list):
        raw_entries = data
    elif isinstance(data, dict) and isinstance(data.get("entries"), list):
        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            logger.warning("%s has schema_version %s; reading as %s", origin, version, SCHEMA_VERSION)
        raw_entries = data["entries"]
    else:
        logger.warning("Unrecognized ledger layout in %s; treating as empty", origin)
        return []

    entries: list[LedgerEntry] = []
    for raw in raw_entries:
        if not isinstance(raw, dict):
            logger.warning("Dropping non-object ledger entry in %s", origin)
            continue
        try:
            entries.append(LedgerEntry.from_dict(raw))
        except (TypeError, ValueError) as exc:
            logger.warning("Dropping malformed ledger entry in %s: %s", origin, exc)
    return entries


class Ledger:
    """Approval ledger backed by a JSON store and a Markdown mirror.

    Args:
        json_path: Authoritative JSON store.
        md_path: Generated Markdown table.
    """

    def __init__(self, json_path: str | Path, md_path: str | Path) -> None:
        self.json_path = Path(json_path)
        self.md_path = Path(md_path)

    # -- Reading ----------------------------------------------------------

    def _load(self) -> list[LedgerEntry]:
        return parse_store(read_json(self.json_path), self.json_path)

    def entries(self, status: EntryStatus | str | None = None) -> list[LedgerEntry]:
        """Return all entries in insertion order, optionally by status."""
        entries = self._load()
        if status is None:
            return entries
        wanted = EntryStatus(status)
        return [e for e in entries if e.status is wanted]

    def latest(
        self,
        name: str,
        status: EntryStatus | str | None = None,
    ) -> LedgerEntry | None:
        """Return the most recent entry for ``name``, optionally by status."""
        for entry in reversed(self.entries(status)):
            if entry.name == name:
                return entry
        return None

    def is_approved(self, name: str, hash: str | None = None) -> ApprovalStatus:
        """Check whether ``name`` (and optionally an exact hash) is approved.

        Only the most recent entry for ``name`` counts: a later block or
        revocation supersedes an earlier approval.

        Args:
            name: Skill name.
            hash: If given, the approval must be for this exact fingerprint.

        Returns:
            ``ApprovalStatus`` with the latest entry and hash comparison.
        """
        entry = self.latest(name)
        if entry is None or entry.status is not EntryStatus.APPROVED:
            return ApprovalStatus(approved=False, entry=entry)
        if hash is None:
            return ApprovalStatus(approved=True, entry=entry)
        match = entry.hash == hash
        return ApprovalStatus(approved=match, entry=entry, hash_match=match)

    def stats(self) -> LedgerStats:
        entries = self._load()
        return LedgerStats(
            total=len(entries),
            approved=sum(e.status is EntryStatus.APPROVED for e in entries),
            blocked=sum(e.status is EntryStatus.BLOCKED for e in entries),
            revoked=sum(e.status is EntryStatus.REVOKED for e in entries),
        )

    # -- Writing ----------------------------------------------------------

    def _write(self, entries: list[LedgerEntry]) -> None:
        atomic_write_json(self.json_path, {
            "schema_version": SCHEMA_VERSION,
            "entries": [e.to_dict() for e in entries],
        })
        atomic_write_text(self.md_path, render_markdown(entries))

    def add(self, entry: LedgerEntry) -> LedgerEntry:
        """Append ``entry``, stamping its date if absent, and persist.

        Raises:
            StateError: If the store cannot be written.
        """
        if not entry.date:
            entry.date = utc_now()
        with state_lock(self.json_path):
            entries = self._load()
            entries.append(entry)
            self._write(entries)
        logger.debug("Ledger: %s %s (%s)", entry.status.value, entry.name, entry.short_hash)
        return entry

    def revoke(self, name: str) -> bool:
        """Flip the most recent approved entry for ``name`` to revoked.

        Returns:
            True if an approved entry was found and revoked.
        """
        with state_lock(self.json_path):
            entries = self._load()
            for entry in reversed(entries):
                if entry.name == name and entry.status is EntryStatus.APPROVED:
                    entry.status = EntryStatus.REVOKED
                    entry.revoked_at = utc_now()
                    self._write(entries)
                    return True
        return False

    def save(self) -> None:
        """Rewrite both files from the current store (upgrades old layouts)."""
        with state_lock(self.json_path):
            self._write(self._load())
