"""Shared fixtures for CLI tests.

Every invocation goes through ``invoke``, which passes ``--config`` with a
file pointing all stores at tmp_path and the scanner at the predictable
test rule set. The gate policy is opened up (``require_approval_for_all:
false``) so clean packages are allowed outright.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest
from click.testing import CliRunner, Result

from skillguard.cli.main import cli

Invoker = Callable[..., Result]


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    path = tmp_path / "skills"
    path.mkdir()
    return path


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    return tmp_path / "state"


@pytest.fixture
def config_file(tmp_path: Path, rules_file: Path, skills_dir: Path, state_dir: Path) -> Path:
    path = tmp_path / "skillguard.yaml"
    path.write_text(
        "gate:\n"
        "  auto_allow_threshold: 80\n"
        "  review_threshold: 50\n"
        "  require_approval_for_all: false\n"
        "scan:\n"
        f"  rules_path: {rules_file}\n"
        "paths:\n"
        f"  ledger_json: {state_dir / 'ledger.json'}\n"
        f"  ledger_md: {state_dir / 'approved.md'}\n"
        f"  watch_state: {state_dir / 'watch.json'}\n"
        f"  skills_dir: {skills_dir}\n"
        "hub:\n"
        "  download_url: https://hub.test/download?slug={slug}\n"
        "  timeout: 5\n"
    )
    return path


@pytest.fixture
def invoke(runner: CliRunner, config_file: Path) -> Invoker:
    """Run the CLI with the test config: ``invoke("scan", path, "--format", "json")``."""

    def _invoke(*args: str, input: str | None = None) -> Result:
        return runner.invoke(cli, ["--config", str(config_file), *args], input=input)

    return _invoke
