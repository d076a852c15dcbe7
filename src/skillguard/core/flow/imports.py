"""Import/export extraction and relative module resolution.

Three import forms are recognized::

    import { readKey } from './secrets.js'      # ES module
    const { readKey } = require('./secrets')     # CommonJS
    const mod = await import('./secrets.mjs')    # dynamic import

``resolve_import`` is deliberately a pure function over a set of known
package paths so it can be tested in isolation.
"""

from __future__ import annotations

import posixpath
import re
from typing import Collection

from skillguard.core.flow.models import ExportInfo, ImportEdge

_ES_IMPORT = re.compile(
    r"""import\s+(?:{([^}]+)}|\*\s+as\s+(\w+)|(\w+))\s+from\s+['"]([^'"]+)['"]"""
)
_CJS_IMPORT = re.compile(
    r"""(?:const|let|var)\s+(?:{([^}]+)}|(\w+))\s*=\s*require\s*\(\s*['"]([^'"]+)['"]\s*\)"""
)
_DYNAMIC_IMPORT = re.compile(r"""import\s*\(\s*['"]([^'"]+)['"]\s*\)""")

_NAMED_EXPORT = re.compile(r"export\s+{([^}]+)}")
_DIRECT_EXPORT = re.compile(r"export\s+(function|const|let|var|class|async\s+function)\s+(\w+)")
_DEFAULT_EXPORT = re.compile(r"export\s+default")
_MODULE_EXPORTS = re.compile(r"module\.exports\s*(?:\.\s*(\w+))?\s*=")

RESOLVE_EXTENSIONS: tuple[str, ...] = (".js", ".mjs", ".cjs", ".ts", ".tsx", ".jsx")


def _split_symbols(group: str, separator: str) -> tuple[str, ...]:
    names = []
    for part in group.split(","):
        name = re.split(separator, part.strip())[0].strip()
        if name:
            names.append(name)
    return tuple(names)


def parse_imports(content: str, file: str) -> list[ImportEdge]:
    """Extract every import statement of ``content``.

    Args:
        content: Source text.
        file: Relative path of the file, recorded as each edge's source.

    Returns:
        Edges in ES, CommonJS, then dynamic order.
    """
    edges: list[ImportEdge] = []

    for match in _ES_IMPORT.finditer(content):
        named, namespace, default, target = match.groups()
        if named:
            symbols = _split_symbols(named, r"\s+as\s+")
        else:
            symbols = (namespace or default,)
        edges.append(ImportEdge(file, target, symbols, target.startswith(".")))

    for match in _CJS_IMPORT.finditer(content):
        named, single, target = match.groups()
        symbols = _split_symbols(named, r"\s*:\s*") if named else (single,)
        edges.append(ImportEdge(file, target, symbols, target.startswith(".")))

    for match in _DYNAMIC_IMPORT.finditer(content):
        target = match.group(1)
        edges.append(ImportEdge(file, target, ("*",), target.startswith(".")))

    return edges


def parse_exports(content: str, file: str) -> ExportInfo:
    """Collect the names ``content`` exports."""
    symbols: list[str] = []
    symbol_types: dict[str, str] = {}

    for match in _NAMED_EXPORT.finditer(content):
        for part in match.group(1).split(","):
            name = re.split(r"\s+as\s+", part.strip())[-1].strip()
            if name:
                symbols.append(name)

    for match in _DIRECT_EXPORT.finditer(content):
        kind, name = match.groups()
        symbols.append(name)
        symbol_types[name] = kind.replace("async", "").strip()

    if _DEFAULT_EXPORT.search(content):
        symbols.append("default")

    for match in _MODULE_EXPORTS.finditer(content):
        symbols.append(match.group(1) or "default")

    return ExportInfo(file=file, symbols=tuple(symbols), symbol_types=symbol_types)


def resolve_import(
    source_file: str,
    specifier: str,
    known_files: Collection[str],
) -> str | None:
    """Resolve a relative module specifier to a package file.

    Tries, in order: the exact path, the path plus each of
    ``RESOLVE_EXTENSIONS``, then ``<path>/index`` plus each extension.

    Args:
        source_file: POSIX path of the importing file, relative to the
            package root.
        specifier: Module specifier as written in the import.
        known_files: POSIX relative paths of the package's files.

    Returns:
        The matching relative path, or None for bare (non-relative)
        specifiers, targets outside the package root and unknown files.
    """
    if not specifier.startswith("."):
        return None

    base_dir = posixpath.dirname(source_file)
    joined = posixpath.normpath(posixpath.join(base_dir, specifier))
    if joined == ".." or joined.startswith("../") or joined.startswith("/"):
        return None

    candidates = [joined]
    candidates.extend(joined + ext for ext in RESOLVE_EXTENSIONS)
    index_base = "index" if joined == "." else f"{joined}/index"
    candidates.extend(index_base + ext for ext in RESOLVE_EXTENSIONS)

    for candidate in candidates:
        if candidate in known_files:
            return candidate
    return None
