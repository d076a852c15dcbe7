"""SkillGuard CLI — install gate, integrity ledger and drift watcher for agent skills.

Entry point for the ``skillguard`` command-line tool. Loads configuration
once and registers all subcommands under a single Click group.

Commands:
    scan      — Scan a local skill package.
    scan-hub  — Download a hub skill and scan it without installing.
    check     — Scan a piece of text.
    batch     — Scan every sub-directory of a directory.
    install   — Run the install gate (ALLOW / REVIEW / BLOCK).
    approve   — Record a human approval.
    revoke    — Withdraw an approval.
    ledger    — Show the decision history.
    verify    — Check an installed skill against its approved hash.
    diff      — Compare two versions of a skill.
    policy    — Show the effective configuration.
    watch     — Detect drift in installed skills.
    runtime   — Look for run-time behavior switches.
    status    — Security dashboard.

Usage::

    skillguard scan ./skills/weather
    skillguard install ./downloads/weather
    skillguard approve weather "forecast lookups" --path ./downloads/weather
    skillguard --config ~/skillguard.yaml watch
"""

from __future__ import annotations

import click

from skillguard import __version__
from skillguard.cli.common import AppContext, configure_logging
from skillguard.cli.diff_cmd import diff_command
from skillguard.cli.install_cmd import (
    approve_command,
    install_command,
    revoke_command,
    verify_command,
)
from skillguard.cli.ledger_cmd import ledger_command, policy_command
from skillguard.cli.scan_cmd import batch_command, check_command, scan_command, scan_hub_command
from skillguard.cli.watch_cmd import runtime_command, status_command, watch_command
from skillguard.config import load_config
from skillguard.exceptions import ConfigError


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Configuration file (default: $SKILLGUARD_CONFIG or ~/.openclaw/workspace/skillguard.yaml).",
)
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """SkillGuard: vet agent skills before install and watch them after.

    Scans skill packages for dangerous patterns, gates installs on a
    score and a human approval, keeps a ledger of approved hashes and
    detects drift in what is installed.
    """
    configure_logging(verbose)
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        ctx.exit(2)
    ctx.obj = AppContext(config)


# Register all subcommands
cli.add_command(scan_command)
cli.add_command(scan_hub_command)
cli.add_command(check_command)
cli.add_command(batch_command)
cli.add_command(install_command)
cli.add_command(approve_command)
cli.add_command(revoke_command)
cli.add_command(ledger_command)
cli.add_command(verify_command)
cli.add_command(diff_command)
cli.add_command(policy_command)
cli.add_command(watch_command)
cli.add_command(runtime_command)
cli.add_command(status_command)
