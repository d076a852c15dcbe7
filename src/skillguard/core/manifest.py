"""Skill manifest (``SKILL.md``) discovery and metadata extraction.

A skill package is a directory holding a ``SKILL.md`` file whose YAML
frontmatter carries at least a ``name``::

    ---
    name: weather
    version: 1.2.0
    description: Look up forecasts
    ---

Older manifests skip the frontmatter fences and simply contain a
``name: ...`` line; both forms are accepted.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

from skillguard.exceptions import NotAPackageError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "SKILL.md"

# Match YAML frontmatter: ---\n...\n---
_FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
_NAME_LINE_PATTERN = re.compile(r"^name:\s*(.+)", re.MULTILINE)
_VERSION_LINE_PATTERN = re.compile(r"^version:\s*(.+)", re.MULTILINE)


@dataclass(frozen=True)
class SkillManifest:
    """Metadata read from a package manifest.

    Attributes:
        name: Declared skill name, or the directory name as a fallback.
        version: Declared version, ``"unknown"`` when absent.
        description: Declared description (may be empty).
        path: Package root directory.
    """

    name: str
    version: str
    description: str
    path: Path


def _clean(value: object) -> str:
    return str(value).strip().strip("\"'")


def read_manifest(package: str | Path) -> SkillManifest:
    """Read name/version/description for a package.

    Never raises: a missing or malformed manifest falls back to the
    directory name and ``"unknown"`` version.
    """
    root = Path(package)
    name = root.resolve().name
    version = "unknown"
    description = ""

    try:
        raw = (root / MANIFEST_NAME).read_text(encoding="utf-8", errors="replace")
    except OSError:
        return SkillManifest(name, version, description, root)

    fm_match = _FRONTMATTER_PATTERN.match(raw)
    if fm_match:
        try:
            data = yaml.safe_load(fm_match.group(1))
        except yaml.YAMLError:
            logger.debug("Malformed frontmatter in %s", root / MANIFEST_NAME)
            data = None
        if isinstance(data, dict):
            if data.get("name"):
                name = _clean(data["name"])
            if data.get("version") is not None:
                version = _clean(data["version"])
            description = _clean(data.get("description") or "")
            return SkillManifest(name, version, description, root)

    name_match = _NAME_LINE_PATTERN.search(raw)
    if name_match:
        name = _clean(name_match.group(1))
    version_match = _VERSION_LINE_PATTERN.search(raw)
    if version_match:
        version = _clean(version_match.group(1))
    return SkillManifest(name, version, description, root)


def skill_name(package: str | Path) -> str:
    """Return the declared name of a package (directory name fallback)."""
    return read_manifest(package).name


def is_package(path: str | Path) -> bool:
    """True if ``path`` is a directory with a manifest file."""
    return (Path(path) / MANIFEST_NAME).is_file()


def locate_package(path: str | Path) -> Path:
    """Resolve a user-supplied path to a package root.

    Accepts the package directory itself, or a directory whose single
    nested sub-directory is the package (the layout most archives unpack
    to).

    Raises:
        NotAPackageError: If ``path`` is not a directory, or neither it nor
            exactly one immediate sub-directory holds a manifest.
    """
    root = Path(path)
    if not root.is_dir():
        raise NotAPackageError(f"Not a directory: {root}")
    if is_package(root):
        return root

    nested = sorted(
        child for child in root.iterdir()
        if child.is_dir() and not child.name.startswith(".") and is_package(child)
    )
    if len(nested) == 1:
        return nested[0]
    if not nested:
        raise NotAPackageError(f"No {MANIFEST_NAME} found in {root}")
    names = ", ".join(child.name for child in nested)
    raise NotAPackageError(f"Multiple packages found in {root}: {names}")
