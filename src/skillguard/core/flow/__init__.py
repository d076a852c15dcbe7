"""Cross-file data flow analysis for skill packages.

Submodules
----------
- ``models``: ImportEdge, ExportInfo, FileCapabilities, FlowChain, FlowResult.
- ``imports``: Import/export parsing and the ``resolve_import`` resolver.
- ``capabilities``: Per-file capability classification.
- ``engine``: The FlowAnalyzer class and chain detection.
"""

from skillguard.core.flow.models import (
    CHAIN_WEIGHTS,
    ExportInfo,
    FileCapabilities,
    FlowChain,
    FlowResult,
    ImportEdge,
)
from skillguard.core.flow.imports import parse_exports, parse_imports, resolve_import
from skillguard.core.flow.capabilities import classify_capabilities
from skillguard.core.flow.engine import CODE_EXTENSIONS, FlowAnalyzer, detect_chains

__all__ = [
    "CHAIN_WEIGHTS",
    "CODE_EXTENSIONS",
    "ExportInfo",
    "FileCapabilities",
    "FlowAnalyzer",
    "FlowChain",
    "FlowResult",
    "ImportEdge",
    "classify_capabilities",
    "detect_chains",
    "parse_exports",
    "parse_imports",
    "resolve_import",
]
