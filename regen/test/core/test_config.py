"""Tests for regen.core.config module."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from regen.core.config import ConfigError, OperatingMode, RunConfig, load_run_config
from regen.core.result import Err, Ok

NOW = datetime(2024, 5, 17, 9, 30, 0, tzinfo=timezone.utc)


class TestOperatingMode:
    def test_parse_is_case_insensitive(self) -> None:
        assert OperatingMode.parse(" PR ") is OperatingMode.PR
        assert OperatingMode.parse("direct") is OperatingMode.DIRECT
        assert OperatingMode.parse("merge") is None

    def test_str_is_value(self) -> None:
        assert str(OperatingMode.DIRECT) == "direct"


class TestRunConfig:
    def test_defaults(self) -> None:
        result = RunConfig.from_dict({}, workspace_root=Path("/ws"), invoke_time=NOW)
        assert isinstance(result, Ok)
        config = result.value
        assert config.mode is OperatingMode.PR
        assert config.debug is False
        assert config.create_release is True
        assert config.pinned_generator_version == "latest"
        assert config.doc_location == "openapi.yaml"
        assert config.repo_slug is None
        assert config.output_file is None
        assert config.ledger_path == Path("/ws/.regen/releases.json")

    def test_invalid_mode(self) -> None:
        result = RunConfig.from_dict({"mode": "merge"}, workspace_root=Path("/ws"), invoke_time=NOW)
        assert isinstance(result, Err)
        assert "invalid mode" in result.error.message

    def test_invalid_boolean(self) -> None:
        result = RunConfig.from_dict({"debug": "yes"}, workspace_root=Path("/ws"), invoke_time=NOW)
        assert isinstance(result, Err)
        assert "debug" in result.error.message

    def test_with_overrides_ignores_none(self) -> None:
        base = RunConfig(workspace_root=Path("/ws"), mode=OperatingMode.PR, invoke_time=NOW)
        config = base.with_overrides(mode=OperatingMode.DIRECT, debug=None, doc_location="api.json")
        assert config.mode is OperatingMode.DIRECT
        assert config.debug is False
        assert config.doc_location == "api.json"

    def test_frozen(self) -> None:
        config = RunConfig(workspace_root=Path("/ws"), mode=OperatingMode.PR, invoke_time=NOW)
        with pytest.raises(AttributeError):
            config.debug = True  # type: ignore[misc]


class TestLoadRunConfig:
    def test_environment_only(self, tmp_path: Path) -> None:
        env = {
            "REGEN_MODE": "direct",
            "REGEN_CREATE_RELEASE": "false",
            "REGEN_GENERATOR_VERSION": "1.180.2",
            "REGEN_REPO": "acme/sdk",
            "GITHUB_OUTPUT": "/tmp/gh-output",
            "UNRELATED": "x",
        }
        result = load_run_config(workspace_root=tmp_path, environ=env, invoke_time=NOW)
        assert isinstance(result, Ok)
        config = result.value
        assert config.mode is OperatingMode.DIRECT
        assert config.create_release is False
        assert config.pinned_generator_version == "1.180.2"
        assert config.repo_slug == "acme/sdk"
        assert config.output_file == Path("/tmp/gh-output")
        assert config.invoke_time == NOW

    def test_environment_overrides_file(self, tmp_path: Path) -> None:
        path = tmp_path / "regen.toml"
        path.write_text(
            '[workflow]\nmode = "direct"\ndebug = true\ndoc_location = "specs/api.yaml"\n',
            encoding="utf-8",
        )
        result = load_run_config(
            workspace_root=tmp_path,
            environ={"REGEN_MODE": "pr", "REGEN_DOC_LOCATION": "  "},
            invoke_time=NOW,
            config_path=path,
        )
        assert isinstance(result, Ok)
        assert result.value.mode is OperatingMode.PR
        assert result.value.debug is True
        assert result.value.doc_location == "specs/api.yaml"

    def test_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "missing.toml"
        result = load_run_config(workspace_root=tmp_path, environ={}, invoke_time=NOW, config_path=path)
        assert isinstance(result, Err)
        assert isinstance(result.error, ConfigError)
        assert result.error.path == path

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "regen.toml"
        path.write_text("[workflow\n", encoding="utf-8")
        result = load_run_config(workspace_root=tmp_path, environ={}, invoke_time=NOW, config_path=path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_invalid_value_in_file_reports_path(self, tmp_path: Path) -> None:
        path = tmp_path / "regen.toml"
        path.write_text('[workflow]\nmode = "merge"\n', encoding="utf-8")
        result = load_run_config(workspace_root=tmp_path, environ={}, invoke_time=NOW, config_path=path)
        assert isinstance(result, Err)
        assert result.error.path == path
