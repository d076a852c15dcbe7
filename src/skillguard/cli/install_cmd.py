"""Install-time commands: ``install``, ``approve``, ``revoke`` and ``verify``.

``install`` runs the gate on a local package or a hub slug and prints its
ALLOW / REVIEW / BLOCK decision. ``approve`` records the human sign-off a
REVIEW asks for; ``revoke`` withdraws one; ``verify`` checks that an
installed package still matches its approved hash.

Exit Codes:
    0 — Allowed, awaiting review, approved, revoked or verified.
    1 — Blocked, nothing to revoke, or hash mismatch / not approved.
    2 — Not a package, hub download failed, or unusable configuration.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from skillguard.cli.common import AppContext, format_option, guarded, pass_app
from skillguard.cli.output import console, decision_line, emit_json, print_gate_decision
from skillguard.core.gate.models import Decision, GateDecision
from skillguard.core.hasher import verify
from skillguard.core.ledger.models import Approver, EntryStatus, LedgerEntry
from skillguard.core.manifest import locate_package, skill_name
from skillguard.exceptions import NotAPackageError
from skillguard.hub import fetch_skill, is_slug

MANUAL_APPROVAL_HASH = "manual-approval"


def _emit_decision(output_format: str, decision: GateDecision, package: str | None) -> None:
    if output_format == "json":
        emit_json(decision.to_dict())
    elif output_format == "compact":
        click.echo(decision_line(decision))
    else:
        print_gate_decision(decision, package)


@click.command("install")
@click.argument("target")
@click.option("--name", default=None, help="Skill name (defaults to the manifest name).")
@click.option("--source", default=None, help="Origin recorded in the ledger.")
@click.option(
    "--installed",
    "installed_path",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Currently installed version to diff against.",
)
@format_option
@pass_app
def install_command(
    app: AppContext,
    target: str,
    name: str | None,
    source: str | None,
    installed_path: str | None,
    output_format: str,
) -> None:
    """Run the install gate on a local package or a hub slug.

    TARGET is a package directory, or a hub slug which is downloaded to a
    temporary directory first.
    """
    with guarded(output_format):
        gate = app.gate()
        if Path(target).exists():
            package = locate_package(target)
            decision = gate.check_install(
                package, name=name, source=source or "local", installed_path=installed_path,
            )
            _emit_decision(output_format, decision, str(package))
        elif is_slug(target):
            hub = app.config.hub
            with fetch_skill(target, download_url=hub.download_url, timeout=hub.timeout) as package:
                decision = gate.check_install(
                    package, name=name, source=source or target, installed_path=installed_path,
                )
                _emit_decision(output_format, decision, None)
        else:
            raise NotAPackageError(f"Not a directory or hub slug: {target}")

    sys.exit(1 if decision.decision is Decision.BLOCK else 0)


def _approve_from_ledger(app: AppContext, name: str, purpose: str | None) -> LedgerEntry | None:
    """Approve ``name`` from what the ledger already knows about it.

    Returns None when the latest entry is already an approval. A blocked or
    revoked entry is superseded by a new approved entry carrying its hash;
    a name the ledger has never seen gets a manual entry with a placeholder
    hash, so a later install still goes through review.
    """
    ledger = app.ledger()
    latest = ledger.latest(name)
    if latest is not None and latest.status is EntryStatus.APPROVED:
        return None
    if latest is None:
        return ledger.add(LedgerEntry(
            name=name,
            source="manual",
            risk="unknown",
            hash=MANUAL_APPROVAL_HASH,
            status=EntryStatus.APPROVED,
            approver=Approver.HUMAN,
            purpose=purpose,
        ))
    return ledger.add(LedgerEntry(
        name=name,
        version=latest.version,
        source=latest.source,
        score=latest.score,
        risk=latest.risk,
        hash=latest.hash,
        status=EntryStatus.APPROVED,
        approver=Approver.HUMAN,
        purpose=purpose or latest.purpose,
        findings_count=latest.findings_count,
    ))


@click.command("approve")
@click.argument("name")
@click.argument("purpose", required=False)
@click.option(
    "--path",
    "package_path",
    type=click.Path(exists=True, file_okay=False),
    default=None,
    help="Check this package and approve exactly the hash that was checked.",
)
@click.option("--source", default=None, help="Origin recorded in the ledger.")
@format_option
@pass_app
def approve_command(
    app: AppContext,
    name: str,
    purpose: str | None,
    package_path: str | None,
    source: str | None,
    output_format: str,
) -> None:
    """Record a human approval for NAME, with an optional PURPOSE note."""
    with guarded(output_format):
        if package_path is not None:
            gate = app.gate()
            package = locate_package(package_path)
            prior = gate.check_install(package, name=name, source=source or "local")
            entry = None if prior.previously_approved else gate.approve(
                package, name, prior, purpose=purpose, source=source or "local",
            )
        else:
            entry = _approve_from_ledger(app, name, purpose)

    if output_format == "json":
        emit_json({
            "name": name,
            "already_approved": entry is None,
            "entry": entry.to_dict() if entry is not None else None,
        })
    elif entry is None:
        click.echo(f"{name} is already approved.")
    else:
        click.echo(f"Approved: {name} ({entry.short_hash})")
    sys.exit(0)


@click.command("revoke")
@click.argument("name")
@format_option
@pass_app
def revoke_command(app: AppContext, name: str, output_format: str) -> None:
    """Revoke the most recent approval for NAME."""
    with guarded(output_format):
        revoked = app.ledger().revoke(name)

    if output_format == "json":
        emit_json({"name": name, "revoked": revoked})
    elif revoked:
        click.echo(f"Revoked: {name}")
    else:
        click.echo(f"No approved entry found for: {name}")
    sys.exit(0 if revoked else 1)


@click.command("verify")
@click.argument("path", type=click.Path(exists=True, file_okay=False))
@click.option("--name", default=None, help="Skill name (defaults to the manifest name).")
@format_option
@pass_app
def verify_command(app: AppContext, path: str, name: str | None, output_format: str) -> None:
    """Check that an installed package still matches its approved hash.

    A name approved by hand, without a package to hash, has nothing to
    verify against and fails with "approved without a recorded hash".
    """
    with guarded(output_format):
        package = locate_package(path)
        name = name or skill_name(package)
        status = app.ledger().is_approved(name)
        approved = status.approved and status.entry is not None
        hash_recorded = approved and status.entry.hash not in ("", MANUAL_APPROVAL_HASH)
        result = verify(package, status.entry.hash) if hash_recorded else None

    verified = result is not None and result.verified
    if output_format == "json":
        emit_json({
            "name": name,
            "approved": approved,
            "hash_recorded": hash_recorded,
            "verified": verified,
            "current_hash": result.current_hash if result else None,
            "expected_hash": result.expected_hash if result else None,
        })
    elif not approved:
        click.echo(f"{name}: not approved in ledger")
    elif result is None:
        console.print(f"[yellow]{name}: approved without a recorded hash[/yellow]")
    elif verified:
        console.print(f"[green]{name}: verified[/green] (hash {result.current_hash[:8]})")
    else:
        console.print(
            f"[bold red]{name}: MODIFIED[/bold red] since approval "
            f"(expected {result.expected_hash[:8]}, got {result.current_hash[:8]})"
        )
    sys.exit(0 if verified else 1)
