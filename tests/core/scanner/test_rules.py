"""Tests for rule loading from YAML and the bundled catalog."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pytest

from skillguard.core.scanner.models import Severity
from skillguard.core.scanner.rules import Rule, RuleSet
from skillguard.exceptions import RuleLoadError


class TestRuleFromDict:
    def test_minimal_rule(self) -> None:
        rule = Rule.from_dict({"id": "X-1", "pattern": "abc", "severity": "high", "weight": 15})
        assert rule.id == "X-1"
        assert rule.severity is Severity.HIGH
        assert rule.title == "X-1"
        assert rule.pattern.search("xxabcxx")

    def test_ignorecase_flag(self) -> None:
        rule = Rule.from_dict({"id": "X-2", "pattern": "secret", "flags": ["ignorecase"]})
        assert rule.pattern.flags & re.IGNORECASE
        assert rule.pattern.search("SECRET")

    def test_missing_pattern(self) -> None:
        with pytest.raises(ValueError, match="missing"):
            Rule.from_dict({"id": "X-3"})

    def test_negative_weight(self) -> None:
        with pytest.raises(ValueError, match="weight"):
            Rule.from_dict({"id": "X-4", "pattern": "a", "weight": -1})

    def test_unknown_flag(self) -> None:
        with pytest.raises(ValueError, match="flag"):
            Rule.from_dict({"id": "X-5", "pattern": "a", "flags": ["dotall-ish"]})


class TestRuleSetLoading:
    def test_load_file(self, rules_file: Path) -> None:
        rules = RuleSet.load(rules_file)
        assert rules.ids == ["TEST-CRIT", "TEST-HIGH", "TEST-MED", "TEST-BIG"]
        assert rules.version == "test-1"
        assert len(rules) == 4

    def test_invalid_regex_skipped_with_warning(
        self, tmp_path: Path, caplog: pytest.LogCaptureFixture
    ) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text(
            "rules:\n"
            "  - {id: GOOD, pattern: ok, weight: 3}\n"
            "  - {id: BAD, pattern: '(unclosed', weight: 3}\n"
        )
        with caplog.at_level(logging.WARNING, logger="skillguard"):
            rules = RuleSet.load(path)
        assert rules.ids == ["GOOD"]
        assert "skipping invalid rule" in caplog.text

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        with pytest.raises(RuleLoadError):
            RuleSet.load(tmp_path / "missing.yaml")

    def test_document_without_rules_list_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("version: 1\n")
        with pytest.raises(RuleLoadError, match="rules"):
            RuleSet.load(path)

    def test_unparseable_yaml_raises(self, tmp_path: Path) -> None:
        path = tmp_path / "rules.yaml"
        path.write_text("rules: [unclosed\n")
        with pytest.raises(RuleLoadError):
            RuleSet.load(path)


class TestBundledCatalog:
    """The catalog shipped inside the package."""

    def test_loads_and_is_nonempty(self) -> None:
        rules = RuleSet.default()
        assert len(rules) >= 20

    def test_ids_are_unique(self) -> None:
        ids = RuleSet.default().ids
        assert len(ids) == len(set(ids))

    def test_every_family_present(self) -> None:
        prefixes = {rule_id.split("-")[0] for rule_id in RuleSet.default().ids}
        assert {"PROMPT", "CRED", "EXFIL", "EXEC", "DESTRUCT", "PERSIST", "OBFUSC"} <= prefixes

    def test_weights_follow_severity(self) -> None:
        expected = {Severity.CRITICAL: 25, Severity.HIGH: 15, Severity.MEDIUM: 8, Severity.LOW: 3}
        for rule in RuleSet.default():
            assert rule.weight == expected[rule.severity], rule.id
