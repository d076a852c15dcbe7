"""Scanning commands: ``scan``, ``scan-hub``, ``check`` and ``batch``.

Exit Codes:
    0 — Score at or above the review threshold (``check``: no findings).
    1 — Score below the review threshold (``check``: any finding).
    2 — Not a package, hub download failed, or unusable configuration.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from skillguard.cli.common import AppContext, format_option, guarded, pass_app
from skillguard.cli.output import (
    console,
    emit_json,
    print_batch,
    print_findings,
    print_scan_report,
    scan_line,
)
from skillguard.core.flow.engine import FlowAnalyzer
from skillguard.core.flow.models import FlowResult
from skillguard.core.manifest import locate_package, skill_name
from skillguard.core.scanner.models import RiskLevel, ScanReport, score_from_findings
from skillguard.hub import fetch_skill


def scan_package(
    app: AppContext,
    package: Path,
    with_flow: bool = True,
) -> tuple[ScanReport, FlowResult | None]:
    """Scan a package and fold flow-chain findings into its score."""
    report = app.scanner().scan(package)
    if not with_flow or not app.config.scan.enable_flow_analysis:
        return report, None
    flow = FlowAnalyzer().analyze(package)
    return report.merged_with(flow.findings), flow


def _report_payload(name: str, package: Path, report: ScanReport, flow: FlowResult | None) -> dict:
    payload = {"name": name, "path": str(package), **report.to_dict()}
    payload["flow"] = flow.to_dict() if flow is not None else None
    return payload


def _emit_report(
    output_format: str,
    name: str,
    package: Path,
    report: ScanReport,
    flow: FlowResult | None,
) -> None:
    if output_format == "json":
        emit_json(_report_payload(name, package, report, flow))
    elif output_format == "compact":
        click.echo(scan_line(name, report))
    else:
        print_scan_report(name, report, flow)


@click.command("scan")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--no-flow", is_flag=True, help="Skip cross-file flow analysis.")
@format_option
@pass_app
def scan_command(app: AppContext, path: str, no_flow: bool, output_format: str) -> None:
    """Scan a local skill package for dangerous patterns.

    PATH is the package directory (the one holding SKILL.md) or a
    directory whose single sub-directory is the package.
    """
    with guarded(output_format):
        package = locate_package(path)
        name = skill_name(package)
        report, flow = scan_package(app, package, with_flow=not no_flow)

    _emit_report(output_format, name, package, report, flow)
    sys.exit(0 if report.score >= app.config.gate.review_threshold else 1)


@click.command("scan-hub")
@click.argument("slug")
@click.option("--no-flow", is_flag=True, help="Skip cross-file flow analysis.")
@format_option
@pass_app
def scan_hub_command(app: AppContext, slug: str, no_flow: bool, output_format: str) -> None:
    """Download a skill from the hub and scan it without installing."""
    hub = app.config.hub
    with guarded(output_format):
        with fetch_skill(slug, download_url=hub.download_url, timeout=hub.timeout) as package:
            name = skill_name(package)
            report, flow = scan_package(app, package, with_flow=not no_flow)
            _emit_report(output_format, name, package, report, flow)

    sys.exit(0 if report.score >= app.config.gate.review_threshold else 1)


@click.command("check")
@click.argument("text")
@format_option
@pass_app
def check_command(app: AppContext, text: str, output_format: str) -> None:
    """Scan a piece of text (use - to read standard input)."""
    if text == "-":
        text = click.get_text_stream("stdin").read()
    with guarded(output_format):
        findings = app.scanner().scan_content(text)
    score = score_from_findings(findings)
    risk = RiskLevel.for_score(score)

    if output_format == "json":
        emit_json({
            "score": score,
            "risk": risk.value,
            "findings": [f.to_dict() for f in findings],
        })
    elif output_format == "compact":
        click.echo(f"input: {score}/100 {risk.value} ({len(findings)} findings)")
    else:
        console.print(f"[bold]Score:[/bold] {score}/100 {risk.value}")
        print_findings(findings)
    sys.exit(1 if findings else 0)


def _batch_targets(directory: Path) -> list[Path]:
    return sorted(
        child for child in directory.iterdir()
        if child.is_dir() and not child.name.startswith(".")
    )


@click.command("batch")
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
@format_option
@pass_app
def batch_command(app: AppContext, directory: str, output_format: str) -> None:
    """Scan every immediate sub-directory of DIRECTORY as a skill."""
    threshold = app.config.gate.review_threshold
    rows: list[tuple[str, ScanReport]] = []
    with guarded(output_format):
        scanner = app.scanner()
        for target in _batch_targets(Path(directory)):
            rows.append((skill_name(target), scanner.scan(target)))

    if output_format == "json":
        emit_json({
            "results": [
                {
                    "name": name,
                    "score": report.score,
                    "risk": report.risk.value,
                    "findings_count": len(report.findings),
                }
                for name, report in rows
            ],
            "summary": {
                "scanned": len(rows),
                "below_threshold": sum(1 for _, r in rows if r.score < threshold),
            },
        })
    elif output_format == "compact":
        for name, report in rows:
            click.echo(scan_line(name, report))
    else:
        print_batch(rows, threshold)

    sys.exit(1 if any(r.score < threshold for _, r in rows) else 0)
