"""Rule-matching engine that scores a package by its dangerous patterns.

``SkillScanner`` walks every regular file of a package, runs every rule of
its ``RuleSet`` over the file content and turns each match into a
``Finding``. The safety score starts at 100 and loses each finding's weight.

The scanner is an explicit value: callers build one with the rule set they
want and pass it to the Gate, the Watcher and the DiffScanner. Nothing is
cached at module level.

Usage::

    scanner = SkillScanner(RuleSet.default())
    report = scanner.scan("skills/weather")
    print(report.score, report.risk.value)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from skillguard.core.scanner.models import Finding, ScanReport
from skillguard.core.scanner.rules import RuleSet
from skillguard.core.walk import line_of, walk_package

logger = logging.getLogger(__name__)

DEFAULT_MAX_FILE_SIZE = 1_048_576
MATCH_TEXT_LIMIT = 120
_BINARY_SNIFF_BYTES = 8192


def _looks_binary(raw: bytes) -> bool:
    return b"\x00" in raw[:_BINARY_SNIFF_BYTES]


class SkillScanner:
    """Match a rule set against packages or raw text.

    Args:
        rules: Rules to apply. Defaults to the bundled catalog.
        max_file_size: Files larger than this many bytes are skipped.
    """

    def __init__(
        self,
        rules: RuleSet | None = None,
        max_file_size: int = DEFAULT_MAX_FILE_SIZE,
    ) -> None:
        self.rules = rules if rules is not None else RuleSet.default()
        self.max_file_size = max_file_size

    def scan_content(self, text: str, file: str = "input") -> list[Finding]:
        """Run every rule over ``text`` and return the matches.

        Args:
            text: Content to match.
            file: Name recorded on each finding.

        Returns:
            Findings in rule order, then match order within a rule.
        """
        findings: list[Finding] = []
        for rule in self.rules:
            for match in rule.pattern.finditer(text):
                if match.start() == match.end():
                    continue
                findings.append(Finding(
                    rule_id=rule.id,
                    severity=rule.severity,
                    category=rule.category,
                    title=rule.title,
                    file=file,
                    line=line_of(text, match.start()),
                    match_text=match.group(0).strip()[:MATCH_TEXT_LIMIT],
                    weight=rule.weight,
                ))
        return findings

    def scan(
        self,
        path: str | Path,
        should_cancel: Callable[[], bool] | None = None,
    ) -> ScanReport:
        """Scan every file of a package and score it.

        Oversized, binary and unreadable files are counted as skipped and
        never abort the scan. ``should_cancel`` is polled between files; a
        cancelled scan keeps the findings gathered so far and is marked
        ``complete=False``.

        Args:
            path: Package root directory.
            should_cancel: Optional cancellation probe.

        Returns:
            A ``ScanReport`` with score in ``[0, 100]``.
        """
        findings: list[Finding] = []
        scanned = 0
        skipped = 0
        complete = True

        for item in walk_package(path):
            if should_cancel is not None and should_cancel():
                logger.info("Scan of %s cancelled after %d files", path, scanned)
                complete = False
                break
            try:
                if item.path.stat().st_size > self.max_file_size:
                    logger.debug("Skipping oversized file: %s", item.rel_path)
                    skipped += 1
                    continue
                raw = item.path.read_bytes()
            except OSError:
                logger.debug("Skipping unreadable file: %s", item.rel_path, exc_info=True)
                skipped += 1
                continue
            if _looks_binary(raw):
                skipped += 1
                continue

            text = raw.decode("utf-8", errors="replace")
            findings.extend(self.scan_content(text, file=item.rel_path))
            scanned += 1

        return ScanReport.from_findings(
            findings,
            files_scanned=scanned,
            files_skipped=skipped,
            complete=complete,
        )
