"""``skillguard ledger`` and ``skillguard policy`` — inspect stored decisions and configuration."""

from __future__ import annotations

import sys

import click

from skillguard.cli.common import AppContext, format_option, guarded, pass_app
from skillguard.cli.output import emit_json, print_ledger, print_policy
from skillguard.core.ledger.ledger import render_markdown
from skillguard.core.ledger.models import EntryStatus


@click.command("ledger")
@click.option(
    "--status",
    type=click.Choice([s.value for s in EntryStatus]),
    default=None,
    help="Only show entries with this status.",
)
@click.option("--markdown", is_flag=True, help="Print the Markdown rendering instead.")
@format_option
@pass_app
def ledger_command(
    app: AppContext,
    status: str | None,
    markdown: bool,
    output_format: str,
) -> None:
    """Show the approved / blocked / revoked history."""
    with guarded(output_format):
        ledger = app.ledger()
        entries = ledger.entries(status)
        stats = ledger.stats()

    if markdown:
        click.echo(render_markdown(entries), nl=False)
    elif output_format == "json":
        emit_json({
            "stats": stats.to_dict(),
            "entries": [e.to_dict() for e in entries],
        })
    elif output_format == "compact":
        for e in entries:
            click.echo(f"{e.status.value:<8} {e.name} {e.score}/100 {e.short_hash}")
    else:
        print_ledger(entries, stats)
    sys.exit(0)


@click.command("policy")
@format_option
@pass_app
def policy_command(app: AppContext, output_format: str) -> None:
    """Show the effective configuration and gate policy."""
    config = app.config
    if output_format == "json":
        emit_json(config.to_dict())
    elif output_format == "compact":
        gate = config.gate
        scope = "all" if gate.require_approval_for_all else f"score < {gate.auto_allow_threshold}"
        click.echo(
            f"approval: {scope}; block below {gate.review_threshold}; "
            f"flow {'on' if config.scan.enable_flow_analysis else 'off'}; "
            f"diff {'on' if config.scan.enable_diff_scan else 'off'}"
        )
    else:
        print_policy(config)
    sys.exit(0)
