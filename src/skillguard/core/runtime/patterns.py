"""Compiled pattern catalogs for runtime-risk detection.

Each family is a list of ``(pattern, severity, description)`` tuples. The
families are applied to every code file; ``PYTHON_RUNTIME`` only to ``.py``
files and ``SHELL_RUNTIME`` only to shell scripts.
"""

from __future__ import annotations

import re

from skillguard.core.scanner.models import Severity

RuntimePattern = tuple[re.Pattern[str], Severity, str]

CRITICAL = Severity.CRITICAL
HIGH = Severity.HIGH
MEDIUM = Severity.MEDIUM


def _p(regex: str, flags: int = 0) -> re.Pattern[str]:
    return re.compile(regex, flags)


# ---------------------------------------------------------------------------
# Code download: fetch a payload, then run it
# ---------------------------------------------------------------------------

CODE_DOWNLOAD: list[RuntimePattern] = [
    (
        _p(r"fetch\s*\([^)]*\)\s*\.then\s*\([^)]*\)\s*\.then\s*\(\s*(?:text|data|code|script)\s*=>\s*(?:eval|Function|new\s+Function)"),
        CRITICAL,
        "Fetch → eval chain: downloads and executes remote code",
    ),
    (
        _p(r"(?:axios|fetch|http\.get|request)\s*\([^)]*\)[\s\S]{0,200}(?:eval|exec|spawn|Function)\s*\("),
        CRITICAL,
        "Network fetch near code execution: potential remote code download",
    ),
    (
        _p(r"(?:writeFile|fs\.write)\s*\([^)]*\.(?:js|sh|py|mjs)['\"]\s*,[\s\S]{0,100}(?:require|import|exec|spawn)"),
        CRITICAL,
        "Writes code file then executes it: dynamic code deployment",
    ),
    (
        _p(r"import\s*\(\s*(?:url|endpoint|remote|fetched|downloaded)", re.IGNORECASE),
        HIGH,
        "Dynamic import from variable: may load remote modules",
    ),
    (
        _p(r"require\s*\(\s*(?:path\.join|`\$\{|downloadedPath|remotePath|tempFile)"),
        HIGH,
        "Dynamic require from constructed path: may load downloaded code",
    ),
    (
        _p(r"npm\s+install|pip\s+install|gem\s+install"),
        HIGH,
        "Package manager install at runtime: installs new dependencies",
    ),
]

# ---------------------------------------------------------------------------
# Dynamic evaluation
# ---------------------------------------------------------------------------

DYNAMIC_EVAL: list[RuntimePattern] = [
    (
        _p(r"new\s+Function\s*\(\s*(?:response|data|body|text|payload|config)\b"),
        CRITICAL,
        "new Function() from external data: compiles runtime code",
    ),
    (
        _p(r"eval\s*\(\s*(?:response|data|body|text|payload|config|JSON\.parse)\b"),
        CRITICAL,
        "eval() on external data: executes arbitrary code",
    ),
    (
        _p(r"vm\s*\.\s*(?:runInContext|runInNewContext|createScript|compileFunction)\s*\("),
        HIGH,
        "Node.js vm module: sandboxed code execution (sandbox escapes exist)",
    ),
    (
        _p(r"WebAssembly\s*\.\s*(?:instantiate|compile)\s*\("),
        MEDIUM,
        "WebAssembly compilation: can execute binary code",
    ),
]

# ---------------------------------------------------------------------------
# Time bombs: behavior gated on a date, a delay or a counter
# ---------------------------------------------------------------------------

TIME_BOMB: list[RuntimePattern] = [
    (
        _p(r"Date\.now\s*\(\s*\)\s*[><=]+\s*\d{12,}"),
        CRITICAL,
        "Timestamp comparison: activates after specific date",
    ),
    (
        _p(r"new\s+Date\s*\(\s*['\"][^'\"]+['\"]\s*\)\s*[<>]"),
        HIGH,
        "Date comparison: behavior changes after specific date",
    ),
    (
        _p(r"setTimeout\s*\([^,]+,\s*\d{6,}\s*\)"),
        MEDIUM,
        "Long setTimeout (>16 min): delayed execution",
    ),
    (
        _p(r"(?:count|run|call|invoke|attempt)\s*[><=]+\s*\d{2,}\s*(?:\)|&&|\|\|)"),
        HIGH,
        "Counter-based activation: triggers after N executions",
    ),
]

# ---------------------------------------------------------------------------
# Environment switches: sandbox and CI evasion
# ---------------------------------------------------------------------------

ENV_SWITCH: list[RuntimePattern] = [
    (
        _p(r"process\.env\.NODE_ENV\s*[!=]==?\s*['\"](?:production|prod)['\"]"),
        MEDIUM,
        "Behavior change in production mode",
    ),
    (
        _p(r"(?:isDocker|isContainer|isCI|isSandbox|isTest)\s*\(\s*\)"),
        HIGH,
        "Environment detection function: may evade sandboxed scanning",
    ),
    (
        _p(r"/proc/1/cgroup|\.dockerenv|KUBERNETES_SERVICE|CI=true"),
        CRITICAL,
        "Container/CI environment detection: sandbox evasion",
    ),
    (
        _p(r"os\.path\.exists\s*\(\s*['\"]/(proc/1/cgroup|\.dockerenv|run/secrets)"),
        CRITICAL,
        "Python container detection: sandbox evasion",
    ),
]

# ---------------------------------------------------------------------------
# Self-modification
# ---------------------------------------------------------------------------

SELF_MODIFY: list[RuntimePattern] = [
    (
        _p(r"(?:writeFile|fs\.write)\s*\(\s*__filename"),
        CRITICAL,
        "Writes to own file: self-modifying code",
    ),
    (
        _p(r"(?:writeFile|fs\.write)\s*\(\s*__dirname"),
        HIGH,
        "Writes to own directory: may modify skill files",
    ),
    (
        _p(r"(?:writeFile|fs\.write)[\s\S]{0,100}SKILL\.md"),
        CRITICAL,
        "Modifies SKILL.md: may alter skill instructions post-install",
    ),
    (
        _p(r"(?:writeFile|fs\.write)[\s\S]{0,100}\.openclaw"),
        CRITICAL,
        "Writes to .openclaw directory: may modify agent configuration",
    ),
    (
        _p(r"git\s+clone|git\s+pull|git\s+fetch"),
        HIGH,
        "Git operations: may download new code at runtime",
    ),
]

# ---------------------------------------------------------------------------
# Command and control
# ---------------------------------------------------------------------------

C2_PATTERN: list[RuntimePattern] = [
    (
        _p(r"setInterval\s*\(\s*(?:async\s+)?(?:function|\(\s*\)\s*=>)\s*\{[\s\S]{0,500}fetch\s*\("),
        CRITICAL,
        "Periodic network polling: command & control beacon pattern",
    ),
    (
        _p(r"WebSocket|new\s+WebSocket|ws://|wss://"),
        HIGH,
        "WebSocket connection: persistent bidirectional channel",
    ),
    (
        _p(r"(?:dns|dgram)\s*\.\s*(?:resolve|lookup|createSocket)"),
        HIGH,
        "DNS/UDP operations: potential covert channel",
    ),
    (
        _p(r"setInterval[\s\S]{0,200}(?:exec|spawn|eval)"),
        CRITICAL,
        "Periodic code execution: may execute remote commands on schedule",
    ),
]

# ---------------------------------------------------------------------------
# Language-specific families
# ---------------------------------------------------------------------------

PYTHON_RUNTIME: list[RuntimePattern] = [
    (
        _p(r"importlib\s*\.\s*import_module\s*\(\s*(?!['\"])"),
        HIGH,
        "Dynamic Python import from variable",
    ),
    (
        _p(r"exec\s*\(\s*(?:requests|urllib|response|data)\b"),
        CRITICAL,
        "exec() on network data: remote code execution",
    ),
    (
        _p(r"subprocess\.(?:Popen|call|run|check_output)\s*\(\s*(?:response|data|command|payload)"),
        CRITICAL,
        "Subprocess with external data: command injection",
    ),
    (
        _p(r"(?:pickle|marshal|shelve)\s*\.loads?\s*\(\s*(?:response|data|request)"),
        CRITICAL,
        "Deserialize network data: arbitrary code execution",
    ),
]

SHELL_RUNTIME: list[RuntimePattern] = [
    (
        _p(r"curl\s+[^\n]*\|\s*(?:bash|sh|eval)"),
        CRITICAL,
        "Pipe curl to shell: remote code execution",
    ),
    (
        _p(r"wget\s+[^\n]*-O\s*-\s*\|\s*(?:bash|sh)"),
        CRITICAL,
        "Pipe wget to shell: remote code execution",
    ),
    (
        _p(r"source\s+<\s*\(\s*curl"),
        CRITICAL,
        "Source from curl: executes remote script in current shell",
    ),
    (
        _p(r"crontab\s+-|/etc/cron"),
        HIGH,
        "Crontab modification: persistence mechanism",
    ),
]

COMMON_FAMILIES: list[tuple[str, list[RuntimePattern]]] = [
    ("code_download", CODE_DOWNLOAD),
    ("dynamic_eval", DYNAMIC_EVAL),
    ("time_bomb", TIME_BOMB),
    ("env_switch", ENV_SWITCH),
    ("self_modify", SELF_MODIFY),
    ("c2_pattern", C2_PATTERN),
]

EXTENSION_FAMILIES: dict[str, tuple[str, list[RuntimePattern]]] = {
    ".py": ("python_runtime", PYTHON_RUNTIME),
    ".sh": ("shell_runtime", SHELL_RUNTIME),
    ".bash": ("shell_runtime", SHELL_RUNTIME),
}
