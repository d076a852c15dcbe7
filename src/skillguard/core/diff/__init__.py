"""Version comparison: file, finding and sensitive-signal diffs."""

from skillguard.core.diff.models import DiffResult, SensitiveChange
from skillguard.core.diff.engine import (
    SENSITIVE_PATTERNS,
    DiffScanner,
    build_summary,
    sensitive_changes,
)

__all__ = [
    "SENSITIVE_PATTERNS",
    "DiffResult",
    "DiffScanner",
    "SensitiveChange",
    "build_summary",
    "sensitive_changes",
]
