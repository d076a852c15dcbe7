"""Rich output formatting helpers for the SkillGuard CLI.

Text mode renders tables and panels with rich; compact mode prints one
line per result; JSON mode goes through ``emit_json`` so that output stays
machine-parseable regardless of terminal width.

Severity Color Mapping:
    CRITICAL = bold red, HIGH = yellow, MEDIUM = cyan, LOW = green
"""

from __future__ import annotations

import json
from typing import Any

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from skillguard.config import GuardConfig
from skillguard.core.diff.models import DiffResult
from skillguard.core.flow.models import FlowResult
from skillguard.core.gate.models import Decision, GateDecision
from skillguard.core.ledger.models import EntryStatus, LedgerEntry, LedgerStats
from skillguard.core.runtime.engine import RuntimeReport
from skillguard.core.scanner.models import Finding, RiskLevel, ScanReport, Severity

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "yellow",
    Severity.MEDIUM: "cyan",
    Severity.LOW: "green",
}

_RISK_STYLES: dict[RiskLevel, str] = {
    RiskLevel.CRITICAL: "bold red",
    RiskLevel.HIGH: "yellow",
    RiskLevel.MEDIUM: "cyan",
    RiskLevel.LOW: "bold green",
}

_DECISION_STYLES: dict[Decision, str] = {
    Decision.ALLOW: "bold green",
    Decision.REVIEW: "bold yellow",
    Decision.BLOCK: "bold red",
}

_STATUS_STYLES: dict[EntryStatus, str] = {
    EntryStatus.APPROVED: "green",
    EntryStatus.BLOCKED: "red",
    EntryStatus.REVOKED: "dim",
}

console = Console()


def severity_style(severity: Severity) -> str:
    """Return the Rich style string for a given severity level."""
    return _SEVERITY_STYLES.get(severity, "white")


def emit_json(data: Any) -> None:
    """Print ``data`` as indented JSON on stdout."""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False))


def _score_text(score: int, risk: RiskLevel) -> Text:
    return Text.assemble(
        (f"{score}/100", "bold"),
        ("  ", ""),
        (risk.value, _RISK_STYLES.get(risk, "white")),
    )


# ---------------------------------------------------------------------------
# Findings
# ---------------------------------------------------------------------------


def print_findings(findings: list[Finding], title: str = "Findings") -> None:
    """Print findings as a table, most severe first."""
    if not findings:
        console.print("[green]No findings.[/green]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Severity", justify="center")
    table.add_column("Rule", style="bold")
    table.add_column("Location", style="dim")
    table.add_column("Title")
    table.add_column("Weight", justify="right")

    for f in sorted(findings, key=lambda item: item.severity, reverse=True):
        location = f.file if f.line == 0 else f"{f.file}:{f.line}"
        table.add_row(
            Text(f.severity.name, style=severity_style(f.severity)),
            f.rule_id,
            location,
            f.title,
            str(f.weight),
        )
    console.print(table)


def print_flow(flow: FlowResult) -> None:
    """Print cross-file chains found by flow analysis."""
    if not flow.complete:
        console.print("[yellow]Flow analysis incomplete; chains unknown.[/yellow]")
        return
    if not flow.chains:
        return
    console.print("[bold]Cross-file data flows:[/bold]")
    for chain in flow.chains:
        style = severity_style(chain.severity)
        console.print(f"  [{style}]{chain.severity.name}[/{style}] {chain.description}")
        console.print(f"    [dim]{' → '.join(chain.files)}[/dim]")


def print_scan_report(
    name: str,
    report: ScanReport,
    flow: FlowResult | None = None,
) -> None:
    """Print detailed scan output for a single package."""
    header = Text.assemble(("Skill: ", "bold"), (name, ""), ("  Score: ", "bold"))
    header.append_text(_score_text(report.score, report.risk))
    console.print(Panel(header, title="SkillGuard Scan"))
    print_findings(report.findings)
    if flow is not None:
        print_flow(flow)
    console.print(
        f"[dim]{report.files_scanned} files scanned, "
        f"{report.files_skipped} skipped[/dim]"
    )
    if not report.complete:
        console.print("[yellow]Scan was cancelled; results are partial.[/yellow]")


def scan_line(name: str, report: ScanReport) -> str:
    """One-line summary for compact output."""
    return f"{name}: {report.score}/100 {report.risk.value} ({len(report.findings)} findings)"


def print_batch(rows: list[tuple[str, ScanReport]], review_threshold: int) -> None:
    """Print a summary table for a batch scan."""
    if not rows:
        console.print("[dim]No skill directories found to scan.[/dim]")
        return

    table = Table(title="SkillGuard Batch Scan", show_header=True, header_style="bold")
    table.add_column("Skill", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Risk", justify="center")
    table.add_column("Findings", justify="right")

    for name, report in rows:
        table.add_row(
            name,
            str(report.score),
            Text(report.risk.value, style=_RISK_STYLES.get(report.risk, "white")),
            str(len(report.findings)),
        )
    console.print(table)

    failing = sum(1 for _, r in rows if r.score < review_threshold)
    parts = [f"[bold]{len(rows)}[/bold] skills scanned"]
    if failing:
        parts.append(f"[red]{failing} below {review_threshold}[/red]")
    else:
        parts.append("[green]all above threshold[/green]")
    console.print(" | ".join(parts))


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------


def print_gate_decision(decision: GateDecision, package: str | None = None) -> None:
    """Print the result of an install check."""
    style = _DECISION_STYLES[decision.decision]
    header = Text.assemble(
        ("Skill: ", "bold"), (decision.name, ""),
        ("  Decision: ", "bold"), (decision.decision.value, style),
        ("  Score: ", "bold"),
    )
    header.append_text(_score_text(decision.score, decision.risk))
    console.print(Panel(header, title="SkillGuard Gate"))
    console.print(decision.reason)
    console.print(
        f"[dim]Hash {decision.hash[:16]}  "
        f"{decision.file_count} files, {decision.total_size} bytes[/dim]"
    )

    if not decision.previously_approved:
        print_findings(decision.findings)
        if decision.flow_findings:
            print_findings(decision.flow_findings, title="Cross-file flows")
    if decision.diff_result is not None:
        console.print(Panel(Text(decision.diff_result.summary), title="Changes vs installed"))

    if decision.decision is Decision.REVIEW:
        hint = f'skillguard approve "{decision.name}"'
        if package:
            hint += f' --path "{package}"'
        console.print(f"\nAwaiting human approval. Run: [bold]{hint}[/bold]")


def decision_line(decision: GateDecision) -> str:
    return (
        f"{decision.name}: {decision.decision.value} "
        f"{decision.score}/100 {decision.risk.value}"
    )


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------


def print_ledger(entries: list[LedgerEntry], stats: LedgerStats) -> None:
    """Print ledger entries and totals."""
    console.print(
        f"[green]Approved: {stats.approved}[/green]  "
        f"[red]Blocked: {stats.blocked}[/red]  "
        f"[dim]Revoked: {stats.revoked}[/dim]"
    )
    if not entries:
        console.print("[dim]Ledger is empty.[/dim]")
        return

    table = Table(title="SkillGuard Ledger", show_header=True, header_style="bold")
    table.add_column("Date", style="dim")
    table.add_column("Skill", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Approver")
    table.add_column("Hash", style="dim")

    for e in entries:
        table.add_row(
            e.date.split("T")[0] if e.date else "unknown",
            e.name,
            f"{e.score}/100",
            Text(e.status.value, style=_STATUS_STYLES[e.status]),
            e.approver.value,
            e.short_hash,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Diff and runtime
# ---------------------------------------------------------------------------


def print_diff(result: DiffResult) -> None:
    """Print a version comparison."""
    console.print(Panel(Text(result.summary or "No changes."), title="SkillGuard Diff"))
    if result.new_findings:
        print_findings(result.new_findings, title="New findings")
    if result.sensitive_changes:
        table = Table(title="Sensitive changes", show_header=True, header_style="bold")
        table.add_column("Type", style="bold")
        table.add_column("Location", style="dim")
        table.add_column("Description")
        table.add_column("New file", justify="center")
        for change in result.sensitive_changes:
            table.add_row(
                change.type,
                f"{change.file}:{change.line}",
                change.description,
                "yes" if change.is_new_file else "",
            )
        console.print(table)


def print_runtime(report: RuntimeReport) -> None:
    """Print runtime-risk findings and the aggregate risk score."""
    console.print(f"[bold]Runtime risk:[/bold] {report.risk_score}/100")
    if not report.findings:
        console.print("[green]No runtime risk patterns found.[/green]")
        return

    table = Table(title="Runtime patterns", show_header=True, header_style="bold")
    table.add_column("Severity", justify="center")
    table.add_column("Type", style="bold")
    table.add_column("Location", style="dim")
    table.add_column("Description")
    for f in report.findings:
        table.add_row(
            Text(f.severity.name, style=severity_style(f.severity)),
            f.type,
            f"{f.file}:{f.line}",
            f.description,
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def print_policy(config: GuardConfig) -> None:
    """Print the effective configuration."""
    source = str(config.source) if config.source else "built-in defaults"
    console.print(f"[bold]Configuration:[/bold] {source}")
    for section, values in config.to_dict().items():
        if not isinstance(values, dict):
            continue
        table = Table(title=section, show_header=False, title_justify="left")
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for key, value in values.items():
            table.add_row(key, "-" if value is None else str(value))
        console.print(table)
