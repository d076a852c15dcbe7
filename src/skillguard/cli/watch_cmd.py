"""Post-install commands: ``watch``, ``runtime`` and ``status``.

``watch`` is meant to run from cron: it prints a plain-text digest and
exits 1 when any alert is critical, so the scheduler can forward it.
"""

from __future__ import annotations

import sys

import click
from rich.table import Table

from skillguard.cli.common import AppContext, format_option, guarded, pass_app
from skillguard.cli.output import console, emit_json, print_runtime
from skillguard.core.runtime.engine import RuntimeMonitor
from skillguard.core.watch.engine import format_alerts

RUNTIME_RISK_LIMIT = 50


@click.command("watch")
@click.argument("skills_dir", required=False, type=click.Path(file_okay=False))
@format_option
@pass_app
def watch_command(app: AppContext, skills_dir: str | None, output_format: str) -> None:
    """Check installed skills for drift since the last run.

    SKILLS_DIR defaults to the configured skills directory.
    """
    with guarded(output_format):
        report = app.watcher(skills_dir).run()

    if output_format == "json":
        emit_json(report.to_dict())
    elif output_format == "compact":
        for alert in report.alerts:
            click.echo(f"{alert.severity.value:<8} {alert.type.value:<12} {alert.skill}")
        if not report.alerts:
            click.echo(f"clean: {report.scanned} skills")
    else:
        click.echo(format_alerts(report))
    sys.exit(1 if report.has_critical else 0)


@click.command("runtime")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@format_option
def runtime_command(path: str, output_format: str) -> None:
    """Look for code that changes behavior at run time."""
    report = RuntimeMonitor().analyze(path)

    if output_format == "json":
        emit_json(report.to_dict())
    elif output_format == "compact":
        click.echo(f"runtime risk {report.risk_score}/100 ({len(report.findings)} findings)")
    else:
        print_runtime(report)
    sys.exit(1 if report.risk_score > RUNTIME_RISK_LIMIT else 0)


@click.command("status")
@click.argument("skills_dir", required=False, type=click.Path(file_okay=False))
@format_option
@pass_app
def status_command(app: AppContext, skills_dir: str | None, output_format: str) -> None:
    """Dashboard of ledger totals, watch state and gate policy."""
    with guarded(output_format):
        watcher = app.watcher(skills_dir)
        ledger = watcher.ledger
        state = watcher.load_state()
        stats = ledger.stats()
        skills = watcher.discover_skills()
        approvals = {s.key: ledger.is_approved(s.name).approved for s in skills}

    gate = app.config.gate
    if output_format == "json":
        emit_json({
            "ledger_stats": stats.to_dict(),
            "watch_state": state.to_dict(),
            "skills": [
                {
                    "key": s.key,
                    "name": s.name,
                    "approved": approvals[s.key],
                    "score": state.skills[s.key].score if s.key in state.skills else None,
                }
                for s in skills
            ],
            "policy": app.config.to_dict()["gate"],
        })
        sys.exit(0)
    if output_format == "compact":
        click.echo(
            f"approved {stats.approved} blocked {stats.blocked} revoked {stats.revoked}; "
            f"{len(skills)} installed; last watch {state.last_run_at or 'never'}"
        )
        sys.exit(0)

    console.print("[bold]SkillGuard Security Status[/bold]\n")
    console.print(
        f"Ledger: [green]approved {stats.approved}[/green]  "
        f"[red]blocked {stats.blocked}[/red]  [dim]revoked {stats.revoked}[/dim]"
    )
    console.print(f"Installed skills: {len(skills)}")
    console.print(f"Last watch run: {state.last_run_at or 'never'}")
    untracked = sum(1 for s in skills if s.key not in state.skills)
    if untracked:
        console.print(f"[yellow]{untracked} skill(s) not yet seen by the watcher[/yellow]")

    if skills:
        table = Table(show_header=True, header_style="bold")
        table.add_column("Skill", style="bold")
        table.add_column("Approved", justify="center")
        table.add_column("Score", justify="right")
        table.add_column("Last scan", style="dim")
        for s in skills:
            tracked = state.skills.get(s.key)
            table.add_row(
                s.key,
                "[green]yes[/green]" if approvals[s.key] else "[yellow]no[/yellow]",
                f"{tracked.score}/100" if tracked else "unscanned",
                tracked.last_scanned_at.split("T")[0] if tracked and tracked.last_scanned_at else "never",
            )
        console.print(table)

    scope = "ALL skills" if gate.require_approval_for_all else f"score < {gate.auto_allow_threshold}"
    console.print(f"\nRequire approval: {scope}")
    console.print(f"Auto-block below: {gate.review_threshold}/100")
    sys.exit(0)
