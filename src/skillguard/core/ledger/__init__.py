"""Approval ledger: append-only JSON store with a Markdown mirror."""

from skillguard.core.ledger.models import (
    SCHEMA_VERSION,
    ApprovalStatus,
    Approver,
    EntryStatus,
    LedgerEntry,
    LedgerStats,
    utc_now,
)
from skillguard.core.ledger.ledger import Ledger, parse_store, render_markdown

__all__ = [
    "SCHEMA_VERSION",
    "ApprovalStatus",
    "Approver",
    "EntryStatus",
    "Ledger",
    "LedgerEntry",
    "LedgerStats",
    "parse_store",
    "render_markdown",
    "utc_now",
]
