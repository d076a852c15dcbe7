"""Rule set loading from an external, versionable YAML data file.

Rules are data, not code: the bundled catalog lives in
``skillguard/rules/dangerous-patterns.yaml`` and a replacement file can be
configured with ``scan.rules_path`` so rules change without a rebuild.

File layout::

    version: 3
    rules:
      - id: EXEC-001
        title: Dynamic code evaluation
        category: code_execution
        severity: high
        weight: 15
        pattern: '\\beval\\s*\\('
        flags: [ignorecase]

``flags`` accepts ``ignorecase`` and ``multiline``. A rule whose pattern
does not compile is skipped with a warning rather than failing the load.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Any, Iterator

import yaml

from skillguard.core.scanner.models import Severity
from skillguard.exceptions import RuleLoadError

logger = logging.getLogger(__name__)

_FLAG_MAP: dict[str, re.RegexFlag] = {
    "ignorecase": re.IGNORECASE,
    "i": re.IGNORECASE,
    "multiline": re.MULTILINE,
    "m": re.MULTILINE,
}

DEFAULT_RULES_RESOURCE = "dangerous-patterns.yaml"


@dataclass(frozen=True)
class Rule:
    """A single scanning rule.

    Attributes:
        id: Stable rule identifier.
        title: Human-readable description of what the rule catches.
        category: Rule family.
        severity: Severity assigned to every match.
        weight: Score penalty per match.
        pattern: Compiled regular expression.
    """

    id: str
    title: str
    category: str
    severity: Severity
    weight: int
    pattern: re.Pattern[str]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Rule:
        """Build a rule from its YAML mapping.

        Raises:
            ValueError: If a required field is missing or malformed.
            re.error: If the pattern does not compile.
        """
        try:
            rule_id = str(data["id"])
            raw_pattern = str(data["pattern"])
        except KeyError as exc:
            raise ValueError(f"rule is missing field {exc}") from None
        flags = 0
        for flag in data.get("flags") or []:
            try:
                flags |= _FLAG_MAP[str(flag).lower()]
            except KeyError:
                raise ValueError(f"rule {rule_id}: unknown flag {flag!r}") from None
        weight = data.get("weight", 0)
        if isinstance(weight, bool) or not isinstance(weight, int) or weight < 0:
            raise ValueError(f"rule {rule_id}: weight must be a non-negative integer")
        return cls(
            id=rule_id,
            title=str(data.get("title", rule_id)),
            category=str(data.get("category", "general")),
            severity=Severity.parse(data.get("severity", "medium")),
            weight=weight,
            pattern=re.compile(raw_pattern, flags),
        )


class RuleSet:
    """An ordered, immutable collection of rules plus the file's version."""

    def __init__(self, rules: list[Rule], version: str = "custom") -> None:
        self._rules = tuple(rules)
        self.version = version

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self._rules]

    @classmethod
    def from_document(cls, data: Any, origin: str) -> RuleSet:
        """Build a rule set from a parsed YAML document.

        Raises:
            RuleLoadError: If the document has no ``rules`` list.
        """
        if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
            raise RuleLoadError(f"{origin}: expected a mapping with a 'rules' list")
        rules: list[Rule] = []
        seen: set[str] = set()
        for raw in data["rules"]:
            if not isinstance(raw, dict):
                logger.warning("%s: ignoring non-mapping rule entry", origin)
                continue
            try:
                rule = Rule.from_dict(raw)
            except (ValueError, re.error) as exc:
                logger.warning("%s: skipping invalid rule: %s", origin, exc)
                continue
            if rule.id in seen:
                logger.warning("%s: duplicate rule id %s", origin, rule.id)
            seen.add(rule.id)
            rules.append(rule)
        return cls(rules, version=str(data.get("version", "unknown")))

    @classmethod
    def load(cls, path: str | Path) -> RuleSet:
        """Load rules from a YAML (or JSON) file.

        Raises:
            RuleLoadError: If the file is missing, unparseable or malformed.
        """
        rule_path = Path(path)
        try:
            data = yaml.safe_load(rule_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise RuleLoadError(f"Cannot load rules from {rule_path}: {exc}") from exc
        return cls.from_document(data, str(rule_path))

    @classmethod
    def default(cls) -> RuleSet:
        """Load the rule catalog bundled with the package."""
        text = (
            resources.files("skillguard")
            .joinpath("rules")
            .joinpath(DEFAULT_RULES_RESOURCE)
            .read_text(encoding="utf-8")
        )
        return cls.from_document(yaml.safe_load(text), DEFAULT_RULES_RESOURCE)
