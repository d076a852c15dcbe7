"""Data models for cross-file flow analysis.

An ``ImportEdge`` records one import statement. ``FileCapabilities`` says
what a single file appears to do. A ``FlowChain`` is a dangerous sequence
of capabilities spread across files that import one another.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from skillguard.core.scanner.models import Finding, Severity

CHAIN_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 30,
    Severity.HIGH: 20,
    Severity.MEDIUM: 10,
}

FLOW_CATEGORY = "cross-file-flow"


@dataclass(frozen=True)
class ImportEdge:
    """An import from ``source`` to the module specifier ``target``.

    Attributes:
        source: Relative path of the importing file.
        target: Module specifier as written (``"./secrets.js"``).
        symbols: Imported names; ``["*"]`` for dynamic imports.
        is_relative: True if ``target`` starts with ``.``.
    """

    source: str
    target: str
    symbols: tuple[str, ...] = ()
    is_relative: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "symbols": list(self.symbols),
            "is_relative": self.is_relative,
        }


@dataclass(frozen=True)
class ExportInfo:
    """Names a file exports, with a type hint where one is declared."""

    file: str
    symbols: tuple[str, ...] = ()
    symbol_types: dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass(frozen=True)
class FileCapabilities:
    """Coarse behaviors inferred from one file's text."""

    reads_credentials: bool = False
    makes_network_calls: bool = False
    encodes_data: bool = False
    executes_code: bool = False
    writes_files: bool = False

    @property
    def any(self) -> bool:
        return (
            self.reads_credentials
            or self.makes_network_calls
            or self.encodes_data
            or self.executes_code
            or self.writes_files
        )

    def to_dict(self) -> dict[str, bool]:
        return {
            "reads_credentials": self.reads_credentials,
            "makes_network_calls": self.makes_network_calls,
            "encodes_data": self.encodes_data,
            "executes_code": self.executes_code,
            "writes_files": self.writes_files,
        }


@dataclass(frozen=True)
class FlowChain:
    """A multi-file capability sequence.

    Attributes:
        description: Human-readable summary of the chain.
        severity: Chain severity.
        files: Files in data-flow order (origin first).
        steps: One description per file.
    """

    description: str
    severity: Severity
    files: tuple[str, ...]
    steps: tuple[str, ...]

    @property
    def weight(self) -> int:
        return CHAIN_WEIGHTS.get(self.severity, 10)

    def to_finding(self) -> Finding:
        """Express the chain as a synthetic scanner finding."""
        return Finding(
            rule_id=f"FLOW_{self.severity.name}",
            severity=self.severity,
            category=FLOW_CATEGORY,
            title=f"Cross-file flow: {self.description}",
            file=" → ".join(self.files),
            line=0,
            match_text=" → ".join(self.steps),
            weight=self.weight,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "severity": self.severity.label,
            "files": list(self.files),
            "steps": list(self.steps),
        }


@dataclass
class FlowResult:
    """Output of one flow analysis.

    ``chains`` and ``findings`` are always empty when ``complete`` is
    False: a partial import graph cannot rule chains in or out.
    """

    edges: list[ImportEdge] = field(default_factory=list)
    exports: dict[str, ExportInfo] = field(default_factory=dict)
    capabilities: dict[str, FileCapabilities] = field(default_factory=dict)
    chains: list[FlowChain] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    complete: bool = True

    @property
    def total_weight(self) -> int:
        return sum(f.weight for f in self.findings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "complete": self.complete,
            "edges": [e.to_dict() for e in self.edges],
            "capabilities": {k: v.to_dict() for k, v in self.capabilities.items()},
            "chains": [c.to_dict() for c in self.chains],
            "findings": [f.to_dict() for f in self.findings],
        }
