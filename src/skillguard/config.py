"""Runtime configuration: gate policy, scan toggles and store locations.

Configuration is read once at process start and is immutable for the rest
of the run. The file is YAML (plain JSON is valid YAML, so the legacy
``skillguard.config.json`` layout loads as well)::

    gate:
      auto_allow_threshold: 80
      review_threshold: 50
      block_threshold: 0
      require_approval_for_all: true
    scan:
      enable_flow_analysis: true
      enable_diff_scan: true
      max_file_size: 1048576
      rules_path: ~/skillguard/my-rules.yaml
    paths:
      ledger_json: ~/.openclaw/workspace/.skillguard-ledger.json
      ledger_md: ~/.openclaw/workspace/memory/reference/approved-skills.md
      watch_state: ~/.openclaw/workspace/.skillguard-watch-state.json
      skills_dir: ~/.openclaw/workspace/skills
    hub:
      download_url: https://clawhub.ai/api/v1/download?slug={slug}
      timeout: 30

Keys may be written in snake_case or the camelCase used by older config
files (``autoAllowThreshold``). Unknown keys are ignored.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from skillguard.exceptions import ConfigError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "SKILLGUARD_CONFIG"

_WORKSPACE = "~/.openclaw/workspace"
DEFAULT_CONFIG_PATH = f"{_WORKSPACE}/skillguard.yaml"

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def expand_path(value: str | Path) -> Path:
    """Expand ``~`` and environment variables in a configured path."""
    return Path(os.path.expandvars(os.path.expanduser(str(value))))


@dataclass(frozen=True)
class GatePolicy:
    """Decision thresholds applied by the Gate.

    Attributes:
        auto_allow_threshold: Adjusted score at or above which a package is
            allowed without review (unless ``require_approval_for_all``).
        review_threshold: Adjusted score below which a package is blocked.
        block_threshold: Reported for completeness; blocking is driven by
            ``review_threshold``.
        require_approval_for_all: When true, every non-blocked install
            needs a human approval.
    """

    auto_allow_threshold: int = 80
    review_threshold: int = 50
    block_threshold: int = 0
    require_approval_for_all: bool = True


@dataclass(frozen=True)
class ScanSettings:
    """Toggles for the expensive analysis passes."""

    enable_flow_analysis: bool = True
    enable_diff_scan: bool = True
    max_file_size: int = 1_048_576
    rules_path: Path | None = None


@dataclass(frozen=True)
class StorePaths:
    """Locations of the persisted ledger and watch state."""

    ledger_json: Path = field(
        default_factory=lambda: expand_path(f"{_WORKSPACE}/.skillguard-ledger.json")
    )
    ledger_md: Path = field(
        default_factory=lambda: expand_path(
            f"{_WORKSPACE}/memory/reference/approved-skills.md"
        )
    )
    watch_state: Path = field(
        default_factory=lambda: expand_path(f"{_WORKSPACE}/.skillguard-watch-state.json")
    )
    skills_dir: Path = field(default_factory=lambda: expand_path(f"{_WORKSPACE}/skills"))


@dataclass(frozen=True)
class HubSettings:
    """Where ``scan-hub`` and ``install <slug>`` download skills from."""

    download_url: str = "https://clawhub.ai/api/v1/download?slug={slug}"
    timeout: float = 30.0


@dataclass(frozen=True)
class GuardConfig:
    """Complete, immutable configuration for one SkillGuard run."""

    gate: GatePolicy = field(default_factory=GatePolicy)
    scan: ScanSettings = field(default_factory=ScanSettings)
    paths: StorePaths = field(default_factory=StorePaths)
    hub: HubSettings = field(default_factory=HubSettings)
    source: Path | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for ``skillguard policy --format json``."""
        return {
            "gate": {
                "auto_allow_threshold": self.gate.auto_allow_threshold,
                "review_threshold": self.gate.review_threshold,
                "block_threshold": self.gate.block_threshold,
                "require_approval_for_all": self.gate.require_approval_for_all,
            },
            "scan": {
                "enable_flow_analysis": self.scan.enable_flow_analysis,
                "enable_diff_scan": self.scan.enable_diff_scan,
                "max_file_size": self.scan.max_file_size,
                "rules_path": str(self.scan.rules_path) if self.scan.rules_path else None,
            },
            "paths": {
                "ledger_json": str(self.paths.ledger_json),
                "ledger_md": str(self.paths.ledger_md),
                "watch_state": str(self.paths.watch_state),
                "skills_dir": str(self.paths.skills_dir),
            },
            "hub": {
                "download_url": self.hub.download_url,
                "timeout": self.hub.timeout,
            },
            "source": str(self.source) if self.source else None,
        }


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _coerce(section: str, name: str, value: Any, default: Any) -> Any:
    """Coerce a raw YAML value to the type of the field's default."""
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        raise ConfigError(f"{section}.{name} must be true or false, got {value!r}")
    if isinstance(default, (int, float)):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ConfigError(f"{section}.{name} must be a number, got {value!r}")
        return type(default)(value)
    if isinstance(default, Path) or name.endswith("_path") or section == "paths":
        if value is None:
            return None
        if not isinstance(value, str):
            raise ConfigError(f"{section}.{name} must be a path string, got {value!r}")
        return expand_path(value)
    if not isinstance(value, str):
        raise ConfigError(f"{section}.{name} must be a string, got {value!r}")
    return value


def _build_section(cls: type, section: str, raw: Any) -> Any:
    if raw is None:
        return cls()
    if not isinstance(raw, dict):
        raise ConfigError(f"Config section '{section}' must be a mapping")
    defaults = cls()
    known = {f.name for f in fields(cls)}
    values: dict[str, Any] = {}
    for key, value in raw.items():
        name = _snake(str(key))
        if name not in known:
            logger.debug("Ignoring unknown config key %s.%s", section, key)
            continue
        values[name] = _coerce(section, name, value, getattr(defaults, name))
    return cls(**values)


def config_from_dict(data: dict[str, Any], source: Path | None = None) -> GuardConfig:
    """Build a ``GuardConfig`` from a parsed mapping.

    Args:
        data: Parsed configuration document.
        source: File the document was read from, if any.

    Returns:
        The frozen configuration.

    Raises:
        ConfigError: If a section or value has the wrong shape.
    """
    sections = {_snake(str(k)): v for k, v in data.items()}
    # Older configs kept ledger paths under "ledger: {jsonPath, mdPath}".
    paths_raw = dict(sections.get("paths") or {})
    legacy_ledger = sections.get("ledger")
    if isinstance(legacy_ledger, dict):
        for key, value in legacy_ledger.items():
            name = _snake(str(key))
            if name in ("json_path", "md_path") and value:
                paths_raw.setdefault(f"ledger_{name[:-5]}", value)
    return GuardConfig(
        gate=_build_section(GatePolicy, "gate", sections.get("gate")),
        scan=_build_section(ScanSettings, "scan", sections.get("scan")),
        paths=_build_section(StorePaths, "paths", paths_raw),
        hub=_build_section(HubSettings, "hub", sections.get("hub")),
        source=source,
    )


def load_config(path: str | Path | None = None) -> GuardConfig:
    """Load configuration from an explicit path, the environment, or defaults.

    Resolution order: ``path`` argument, ``$SKILLGUARD_CONFIG``, then
    ``~/.openclaw/workspace/skillguard.yaml`` if it exists. With none of
    these, built-in defaults are returned.

    Raises:
        ConfigError: If an explicitly requested file is missing, or any
            chosen file cannot be parsed.
    """
    explicit = path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        config_path = expand_path(explicit)
        if not config_path.is_file():
            raise ConfigError(f"Config file not found: {config_path}")
    else:
        config_path = expand_path(DEFAULT_CONFIG_PATH)
        if not config_path.is_file():
            return GuardConfig()

    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read config {config_path}: {exc}") from exc

    if data is None:
        return GuardConfig(source=config_path)
    if not isinstance(data, dict):
        raise ConfigError(f"Config {config_path} must contain a mapping")
    logger.debug("Loaded config from %s", config_path)
    return config_from_dict(data, source=config_path)
