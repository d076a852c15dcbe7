"""``skillguard diff <old> <new>`` — Compare two versions of a skill.

Exit Codes:
    0 — The new version is at most 10 points riskier than the old one.
    1 — The score dropped by more than 10 points.
    2 — Unusable configuration or rule file.
"""

from __future__ import annotations

import sys

import click

from skillguard.cli.common import AppContext, format_option, guarded, pass_app
from skillguard.cli.output import emit_json, print_diff
from skillguard.core.diff.engine import DiffScanner

RISK_DELTA_LIMIT = 10


@click.command("diff")
@click.argument("old", type=click.Path(exists=True, file_okay=False))
@click.argument("new", type=click.Path(exists=True, file_okay=False))
@format_option
@pass_app
def diff_command(app: AppContext, old: str, new: str, output_format: str) -> None:
    """Show what changed between the OLD and NEW version of a skill."""
    with guarded(output_format):
        result = DiffScanner(app.scanner()).diff(old, new)

    if output_format == "json":
        emit_json(result.to_dict())
    elif output_format == "compact":
        click.echo(
            f"+{len(result.added)} -{len(result.removed)} ~{len(result.modified)} "
            f"score {result.old_score} -> {result.new_score} "
            f"({len(result.new_findings)} new findings)"
        )
    else:
        print_diff(result)
    sys.exit(1 if result.risk_delta > RISK_DELTA_LIMIT else 0)
