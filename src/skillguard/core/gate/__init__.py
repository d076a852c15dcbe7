"""Install gate producing ALLOW, REVIEW or BLOCK decisions."""

from skillguard.core.gate.models import Decision, GateDecision, Verdict
from skillguard.core.gate.engine import Gate, decide

__all__ = [
    "Decision",
    "Gate",
    "GateDecision",
    "Verdict",
    "decide",
]
