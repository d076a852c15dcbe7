"""Tests for configuration loading and validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from skillguard.config import CONFIG_ENV_VAR, GuardConfig, config_from_dict, load_config
from skillguard.exceptions import ConfigError


class TestDefaults:
    def test_gate_defaults(self) -> None:
        config = GuardConfig()
        assert config.gate.auto_allow_threshold == 80
        assert config.gate.review_threshold == 50
        assert config.gate.block_threshold == 0
        assert config.gate.require_approval_for_all is True

    def test_scan_defaults(self) -> None:
        config = GuardConfig()
        assert config.scan.enable_flow_analysis is True
        assert config.scan.enable_diff_scan is True
        assert config.scan.max_file_size == 1_048_576
        assert config.scan.rules_path is None

    def test_config_is_frozen(self) -> None:
        config = GuardConfig()
        with pytest.raises(AttributeError):
            config.gate.review_threshold = 10  # type: ignore[misc]


class TestLoadConfig:
    def test_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "skillguard.yaml"
        path.write_text(
            "gate:\n"
            "  review_threshold: 60\n"
            "  require_approval_for_all: false\n"
            "paths:\n"
            f"  ledger_json: {tmp_path}/ledger.json\n"
        )
        config = load_config(path)
        assert config.gate.review_threshold == 60
        assert config.gate.require_approval_for_all is False
        assert config.gate.auto_allow_threshold == 80
        assert config.paths.ledger_json == tmp_path / "ledger.json"
        assert config.source == path

    def test_legacy_camel_case_json(self, tmp_path: Path) -> None:
        path = tmp_path / "skillguard.config.json"
        path.write_text(json.dumps({
            "gate": {"autoAllowThreshold": 90, "requireApprovalForAll": False},
            "ledger": {"jsonPath": str(tmp_path / "old.json"), "mdPath": str(tmp_path / "old.md")},
        }))
        config = load_config(path)
        assert config.gate.auto_allow_threshold == 90
        assert config.gate.require_approval_for_all is False
        assert config.paths.ledger_json == tmp_path / "old.json"
        assert config.paths.ledger_md == tmp_path / "old.md"

    def test_tilde_is_expanded(self) -> None:
        config = config_from_dict({"paths": {"skills_dir": "~/skills"}})
        assert "~" not in str(config.paths.skills_dir)

    def test_unknown_keys_ignored(self) -> None:
        config = config_from_dict({"gate": {"colour": "blue"}, "extra": {"a": 1}})
        assert config.gate == GuardConfig().gate

    def test_environment_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "env.yaml"
        path.write_text("gate:\n  auto_allow_threshold: 95\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert load_config().gate.auto_allow_threshold == 95

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path).gate == GuardConfig().gate


class TestConfigErrors:
    def test_missing_explicit_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_unparseable_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("gate: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_wrong_type(self) -> None:
        with pytest.raises(ConfigError, match="review_threshold"):
            config_from_dict({"gate": {"review_threshold": "high"}})

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(ConfigError):
            config_from_dict({"gate": {"review_threshold": True}})

    def test_non_mapping_document(self, tmp_path: Path) -> None:
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)
