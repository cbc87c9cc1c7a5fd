from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

import regen.cli.commands.run_cmd as run_cmd
from regen import __version__
from regen.cli.app import app
from regen.cli.commands._helpers import workflow_error_code
from regen.core.config import OperatingMode, RunConfig
from regen.core.errors import ErrorCode
from regen.core.result import Err, Ok, Result
from regen.services.workflow import ledger
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.model import GeneratedLanguage, ReleaseRecord

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "REGEN_MODE",
        "REGEN_DEBUG",
        "REGEN_CREATE_RELEASE",
        "REGEN_GENERATOR_VERSION",
        "REGEN_DOC_LOCATION",
        "REGEN_REPO",
        "REGEN_DEFAULT_BRANCH",
        "REGEN_LEDGER_FILE",
        "REGEN_BIN",
        "GITHUB_OUTPUT",
    ):
        monkeypatch.delenv(key, raising=False)


def _capture_run(
    monkeypatch: pytest.MonkeyPatch, result: Result[None, WorkflowError]
) -> list[RunConfig]:
    seen: list[RunConfig] = []

    def fake_run_workflow(*, config: RunConfig, **_: object) -> Result[None, WorkflowError]:
        seen.append(config)
        return result

    monkeypatch.setattr(run_cmd, "run_workflow", fake_run_workflow)
    return seen


def test_run_applies_flags_over_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REGEN_MODE", "pr")
    monkeypatch.setenv("REGEN_GENERATOR_VERSION", "1.170.0")
    seen = _capture_run(monkeypatch, Ok(None))

    result = runner.invoke(
        app,
        [
            "run",
            "--workspace",
            str(tmp_path),
            "--mode",
            "direct",
            "--no-create-release",
            "--doc",
            "specs/api.yaml",
        ],
    )

    assert result.exit_code == 0, result.output
    config = seen[0]
    assert config.mode is OperatingMode.DIRECT
    assert config.create_release is False
    assert config.doc_location == "specs/api.yaml"
    assert config.pinned_generator_version == "1.170.0"
    assert config.workspace_root == tmp_path.resolve()


def test_run_failure_maps_exit_code(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    _capture_run(
        monkeypatch,
        Err(WorkflowError(kind="generation_failed", message="generator failed (exit 1)")),
    )

    result = runner.invoke(app, ["run", "--workspace", str(tmp_path)])

    assert result.exit_code == int(ErrorCode.GENERATION_ERROR)


def test_run_rejects_invalid_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("REGEN_MODE", "merge")
    seen = _capture_run(monkeypatch, Ok(None))

    result = runner.invoke(app, ["run", "--workspace", str(tmp_path)])

    assert result.exit_code == int(ErrorCode.USER_ERROR)
    assert seen == []


def test_ledger_last_prints_notes(tmp_path: Path) -> None:
    record = ReleaseRecord(
        title="2024-05-17 09:30:00",
        doc_version="0.3.0",
        generator_version="1.180.2",
        generation_version="2.311.0",
        doc_location="openapi.yaml",
        languages_generated={"python": GeneratedLanguage(version="1.2.0", path="out/python")},
    )
    ledger.append(record, path=tmp_path / ".regen" / "releases.json")

    result = runner.invoke(app, ["ledger", "last", "--workspace", str(tmp_path)])

    assert result.exit_code == 0, result.output
    assert "## 2024-05-17 09:30:00" in result.output
    assert "- [python v1.2.0] out/python" in result.output


def test_ledger_last_on_empty_ledger(tmp_path: Path) -> None:
    result = runner.invoke(app, ["ledger", "last", "--workspace", str(tmp_path)])
    assert result.exit_code == int(ErrorCode.IO_ERROR)


def test_version_flag() -> None:
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


@pytest.mark.parametrize(
    ("kind", "code"),
    [
        ("config_invalid", ErrorCode.USER_ERROR),
        ("generator_too_old", ErrorCode.ENV_ERROR),
        ("generation_failed", ErrorCode.GENERATION_ERROR),
        ("ledger_corrupt", ErrorCode.IO_ERROR),
        ("merge_failed", ErrorCode.VCS_ERROR),
        ("request_failed", ErrorCode.VCS_ERROR),
    ],
)
def test_workflow_error_code(kind: str, code: ErrorCode) -> None:
    error = WorkflowError(kind=kind, message="x")  # type: ignore[arg-type]
    assert workflow_error_code(error) == code
