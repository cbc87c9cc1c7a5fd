"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import NoReturn

import typer

from regen.core.errors import ErrorCode
from regen.output.console import ConsoleProtocol, Style
from regen.services.workflow.errors import WorkflowError


def workflow_error_code(error: WorkflowError) -> ErrorCode:
    kind = error.kind
    if kind in {"invalid_input", "config_invalid"}:
        return ErrorCode.USER_ERROR
    if kind in {"generator_missing", "generator_too_old"}:
        return ErrorCode.ENV_ERROR
    if kind == "generation_failed":
        return ErrorCode.GENERATION_ERROR
    if kind in {"not_found", "ledger_corrupt", "ledger_write_failed"}:
        return ErrorCode.IO_ERROR
    return ErrorCode.VCS_ERROR


def exit_with_error(error: WorkflowError, console: ConsoleProtocol) -> NoReturn:
    """Print `error: ...` and `hint: ...`, then exit with the mapped code."""
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)
    raise typer.Exit(code=int(workflow_error_code(error)))
