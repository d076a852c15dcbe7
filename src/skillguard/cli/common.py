"""Shared plumbing for SkillGuard commands.

Every command receives an ``AppContext`` holding the configuration loaded
by the top-level group, and builds the components it needs from it. Fatal
input errors are turned into exit code 2 by ``guarded``.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, NoReturn

import click
from rich.console import Console
from rich.logging import RichHandler

from skillguard.config import GuardConfig
from skillguard.core.flow.engine import FlowAnalyzer
from skillguard.core.gate.engine import Gate
from skillguard.core.ledger.ledger import Ledger
from skillguard.core.scanner.engine import SkillScanner
from skillguard.core.scanner.rules import RuleSet
from skillguard.core.watch.engine import Watcher
from skillguard.exceptions import SkillGuardError

OUTPUT_FORMATS = ("text", "compact", "json")

_HANDLER_NAME = "skillguard-cli"


def configure_logging(verbose: bool) -> None:
    """Route ``skillguard`` log records to stderr through rich.

    WARNING and above by default, everything with ``-v``. Calling this
    again replaces the handler installed by the previous call.
    """
    package_logger = logging.getLogger("skillguard")
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        show_time=verbose,
    )
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


@dataclass
class AppContext:
    """Per-invocation state shared by all commands."""

    config: GuardConfig
    _scanner: SkillScanner | None = field(default=None, repr=False)

    def scanner(self) -> SkillScanner:
        """Scanner over the configured rule file, or the bundled rules.

        Raises:
            RuleLoadError: If a configured rule file cannot be loaded.
        """
        if self._scanner is None:
            rules_path = self.config.scan.rules_path
            rules = RuleSet.load(rules_path) if rules_path else RuleSet.default()
            self._scanner = SkillScanner(rules, max_file_size=self.config.scan.max_file_size)
        return self._scanner

    def ledger(self) -> Ledger:
        return Ledger(self.config.paths.ledger_json, self.config.paths.ledger_md)

    def gate(self) -> Gate:
        return Gate(
            self.scanner(),
            self.ledger(),
            policy=self.config.gate,
            settings=self.config.scan,
            flow_analyzer=FlowAnalyzer(),
        )

    def watcher(self, skills_dir: str | Path | None = None) -> Watcher:
        return Watcher(
            skills_dir or self.config.paths.skills_dir,
            self.config.paths.watch_state,
            self.ledger(),
            self.scanner(),
            settings=self.config.scan,
            flow_analyzer=FlowAnalyzer(),
        )


pass_app = click.make_pass_decorator(AppContext)


def format_option(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the shared ``--format text|compact|json`` option."""
    return click.option(
        "--format",
        "output_format",
        type=click.Choice(OUTPUT_FORMATS),
        default="text",
        show_default=True,
        help="Output format.",
    )(func)


def fail(message: str, output_format: str = "text") -> NoReturn:
    """Report a fatal error and exit with status 2."""
    if output_format == "json":
        click.echo(json.dumps({"error": message}))
    else:
        click.echo(f"Error: {message}", err=True)
    sys.exit(2)


@contextmanager
def guarded(output_format: str) -> Iterator[None]:
    """Turn any ``SkillGuardError`` raised in the block into exit code 2."""
    try:
        yield
    except SkillGuardError as exc:
        fail(str(exc), output_format)
