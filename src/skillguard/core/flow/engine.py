"""Cross-file flow analysis over a package's import graph.

A single file reading ``process.env`` is unremarkable, as is a single file
calling ``fetch``. When the second imports the first, secrets can leave
the machine without either file looking malicious on its own. The
``FlowAnalyzer`` builds the package's internal import graph, classifies
every code file's capabilities and reports three chain shapes:

1. credential read → network send (critical),
2. credential read → encode → network send (critical),
3. code execution → network send (high).

Chain detection needs the complete capability map. If the graph walk is
cancelled the result is marked incomplete and carries no chains.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from skillguard.core.flow.capabilities import classify_capabilities
from skillguard.core.flow.imports import parse_exports, parse_imports, resolve_import
from skillguard.core.flow.models import (
    FileCapabilities,
    FlowChain,
    FlowResult,
    ImportEdge,
)
from skillguard.core.scanner.models import Severity
from skillguard.core.walk import read_text, walk_package

logger = logging.getLogger(__name__)

CODE_EXTENSIONS: frozenset[str] = frozenset({".js", ".mjs", ".cjs", ".ts", ".tsx", ".jsx"})


class FlowAnalyzer:
    """Detect exfiltration chains that span several files.

    The analyzer holds no per-run state, so one instance can serve many
    packages.
    """

    def analyze(
        self,
        path: str | Path,
        should_cancel: Callable[[], bool] | None = None,
    ) -> FlowResult:
        """Build the import graph of ``path`` and detect flow chains.

        Args:
            path: Package root directory.
            should_cancel: Optional probe polled between files.

        Returns:
            A ``FlowResult``. When cancelled, ``complete`` is False and no
            chains or findings are reported.
        """
        result = FlowResult()

        for item in walk_package(path, CODE_EXTENSIONS):
            if should_cancel is not None and should_cancel():
                logger.info("Flow analysis of %s cancelled; chains unknown", path)
                result.complete = False
                return result
            content = read_text(item.path)
            if content is None:
                continue
            result.capabilities[item.rel_path] = classify_capabilities(content)
            result.edges.extend(parse_imports(content, item.rel_path))
            result.exports[item.rel_path] = parse_exports(content, item.rel_path)

        result.chains = detect_chains(result.edges, result.capabilities)
        result.findings = [chain.to_finding() for chain in result.chains]
        return result


def _resolved_edges(
    edges: list[ImportEdge],
    capabilities: dict[str, FileCapabilities],
) -> list[tuple[str, str]]:
    """Return ``(importer, exporter)`` pairs between package files, one per edge."""
    pairs: list[tuple[str, str]] = []
    for edge in edges:
        if not edge.is_relative:
            continue
        target = resolve_import(edge.source, edge.target, capabilities)
        if target is None:
            continue
        pairs.append((edge.source, target))
    return pairs


def detect_chains(
    edges: list[ImportEdge],
    capabilities: dict[str, FileCapabilities],
) -> list[FlowChain]:
    """Find dangerous capability chains along resolved import edges.

    Args:
        edges: Every import edge found in the package.
        capabilities: Capability map covering every code file.

    Returns:
        Chains in edge order. An import repeated within one file is a
        second edge and yields its own chains.
    """
    pairs = _resolved_edges(edges, capabilities)
    importers_of: dict[str, list[str]] = {}
    for importer, exporter in pairs:
        importers_of.setdefault(exporter, []).append(importer)

    chains: list[FlowChain] = []
    for importer, exporter in pairs:
        imp_caps = capabilities[importer]
        exp_caps = capabilities[exporter]

        if exp_caps.reads_credentials and imp_caps.makes_network_calls:
            chains.append(FlowChain(
                description="Credential read in one file, network send in another",
                severity=Severity.CRITICAL,
                files=(exporter, importer),
                steps=(
                    f"{exporter}: reads credentials/secrets",
                    f"{importer}: imports from {exporter} and makes network calls",
                ),
            ))

        if exp_caps.reads_credentials and imp_caps.encodes_data:
            for downstream in importers_of.get(importer, []):
                if capabilities[downstream].makes_network_calls:
                    chains.append(FlowChain(
                        description="Three-stage exfiltration: read → encode → send",
                        severity=Severity.CRITICAL,
                        files=(exporter, importer, downstream),
                        steps=(
                            f"{exporter}: reads credentials",
                            f"{importer}: encodes/transforms data",
                            f"{downstream}: sends over network",
                        ),
                    ))

        if exp_caps.executes_code and imp_caps.makes_network_calls:
            chains.append(FlowChain(
                description="Code execution + network access across files",
                severity=Severity.HIGH,
                files=(exporter, importer),
                steps=(
                    f"{exporter}: executes code",
                    f"{importer}: imports and has network access",
                ),
            ))

    return chains
