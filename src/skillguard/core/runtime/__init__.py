"""Runtime-risk monitor: static detection of post-install behavior changes."""

from skillguard.core.runtime.engine import (
    CODE_EXTENSIONS,
    RuntimeFinding,
    RuntimeMonitor,
    RuntimeReport,
    match_family,
    risk_score,
)

__all__ = [
    "CODE_EXTENSIONS",
    "RuntimeFinding",
    "RuntimeMonitor",
    "RuntimeReport",
    "match_family",
    "risk_score",
]
