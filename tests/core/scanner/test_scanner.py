"""Tests for SkillScanner: matching, scoring, skipping and cancellation."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from hypothesis import given
from hypothesis import strategies as st

from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.scanner.rules import Rule, RuleSet
from skillguard.core.scanner.models import (
    Finding,
    RiskLevel,
    ScanReport,
    Severity,
    score_from_findings,
)


def _finding(weight: int, line: int = 1, rule_id: str = "R") -> Finding:
    return Finding(
        rule_id=rule_id,
        severity=Severity.HIGH,
        category="test",
        title="t",
        file="f.js",
        line=line,
        match_text="m",
        weight=weight,
    )


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class TestRiskBands:
    def test_band_edges(self) -> None:
        assert RiskLevel.for_score(100) is RiskLevel.LOW
        assert RiskLevel.for_score(80) is RiskLevel.LOW
        assert RiskLevel.for_score(79) is RiskLevel.MEDIUM
        assert RiskLevel.for_score(50) is RiskLevel.MEDIUM
        assert RiskLevel.for_score(49) is RiskLevel.HIGH
        assert RiskLevel.for_score(20) is RiskLevel.HIGH
        assert RiskLevel.for_score(19) is RiskLevel.CRITICAL
        assert RiskLevel.for_score(0) is RiskLevel.CRITICAL


class TestScoreProperties:
    """Property: scores always land in [0, 100]."""

    @given(weights=st.lists(st.integers(min_value=0, max_value=200), max_size=50))
    def test_score_bounded(self, weights: list[int]) -> None:
        score = score_from_findings([_finding(w) for w in weights])
        assert 0 <= score <= 100

    @given(weights=st.lists(st.integers(min_value=0, max_value=30), max_size=10))
    def test_score_is_base_minus_weights_until_floor(self, weights: list[int]) -> None:
        score = score_from_findings([_finding(w) for w in weights])
        assert score == max(0, 100 - sum(weights))

    def test_saturated_package_scores_zero(self) -> None:
        assert score_from_findings([_finding(25)] * 10) == 0


# ---------------------------------------------------------------------------
# Package scans
# ---------------------------------------------------------------------------


class TestScanPackage:
    def test_empty_directory_scores_100(self, scanner: SkillScanner, tmp_path: Path) -> None:
        report = scanner.scan(tmp_path)
        assert report.score == 100
        assert report.risk is RiskLevel.LOW
        assert report.findings == []
        assert report.files_scanned == 0

    def test_clean_package(self, scanner: SkillScanner, make_package: Callable[..., Path]) -> None:
        pkg = make_package("clean", {"index.js": "export const hello = () => 'hi';\n"})
        report = scanner.scan(pkg)
        assert report.score == 100
        assert report.files_scanned == 2

    def test_findings_carry_file_and_line(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("bad", {"lib/run.js": "const a = 1;\n\nEVIL_MARKER();\n"})
        report = scanner.scan(pkg)
        assert len(report.findings) == 1
        finding = report.findings[0]
        assert finding.rule_id == "TEST-CRIT"
        assert finding.file == "lib/run.js"
        assert finding.line == 3
        assert finding.match_text == "EVIL_MARKER"
        assert report.score == 75
        assert report.risk is RiskLevel.MEDIUM

    def test_weights_accumulate_across_files(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("multi", {
            "a.js": "EVIL_MARKER",
            "b.sh": "SUSPICIOUS_CALL",
            "c.md": "NOTE_ME",
        })
        report = scanner.scan(pkg)
        assert report.score == 100 - 25 - 15 - 8
        assert report.max_severity is Severity.CRITICAL

    def test_repeated_matches_are_not_deduplicated(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        """Every match costs its full weight, even the same rule on the same line.

        Scores of packages that repeat one pattern many times saturate at 0.
        This pins the current behavior so that any change to it is deliberate.
        """
        pkg = make_package("repeat", {"x.js": "EVIL_MARKER EVIL_MARKER\nEVIL_MARKER\n"})
        report = scanner.scan(pkg)
        assert len(report.findings) == 3
        assert [f.line for f in report.findings] == [1, 1, 2]
        assert report.score == 25

    def test_binary_files_skipped(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("bin", {"blob.bin": b"\x00\x01EVIL_MARKER"})
        report = scanner.scan(pkg)
        assert report.findings == []
        assert report.files_skipped == 1

    def test_oversized_files_skipped(
        self, test_rules: RuleSet, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("big", {"big.js": "EVIL_MARKER" + " " * 200})
        report = SkillScanner(test_rules, max_file_size=100).scan(pkg)
        assert report.findings == []
        assert report.files_skipped == 1

    def test_invalid_utf8_does_not_abort(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("latin", {"a.txt": "caf\xe9 EVIL_MARKER".encode("latin-1")})
        report = scanner.scan(pkg)
        assert [f.rule_id for f in report.findings] == ["TEST-CRIT"]

    def test_cancellation_keeps_partial_findings(
        self, scanner: SkillScanner, make_package: Callable[..., Path]
    ) -> None:
        pkg = make_package("cancel", {"a.js": "EVIL_MARKER", "b.js": "SUSPICIOUS_CALL"})
        calls = {"n": 0}

        def cancel_before_last() -> bool:
            calls["n"] += 1
            return calls["n"] > 2

        report = scanner.scan(pkg, should_cancel=cancel_before_last)
        assert report.complete is False
        assert [f.rule_id for f in report.findings] == ["TEST-CRIT"]


class TestScanContent:
    def test_reports_against_input(self, scanner: SkillScanner) -> None:
        findings = scanner.scan_content("one\nSUSPICIOUS_CALL\n")
        assert len(findings) == 1
        assert findings[0].file == "input"
        assert findings[0].line == 2

    def test_match_text_truncated(self) -> None:
        long_rule = Rule.from_dict({"id": "LONG", "pattern": "A+", "weight": 1})
        findings = SkillScanner(RuleSet([long_rule])).scan_content("A" * 500)
        assert len(findings[0].match_text) == 120


class TestScanReport:
    def test_merged_with_folds_extra_weights(self) -> None:
        report = ScanReport.from_findings([_finding(10)])
        merged = report.merged_with([_finding(30, rule_id="FLOW_CRITICAL")])
        assert merged.score == 60
        assert merged.risk is RiskLevel.MEDIUM
        assert len(merged.findings) == 2

    def test_to_dict_shape(self) -> None:
        data = ScanReport.from_findings([_finding(10)]).to_dict()
        assert data["score"] == 90
        assert data["risk"] == "LOW"
        assert data["findings_count"] == 1
        assert data["findings"][0]["severity"] == "high"
