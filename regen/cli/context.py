from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import typer

from regen.core.config import RunConfig, load_run_config
from regen.core.errors import ErrorCode
from regen.core.result import Err
from regen.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: RunConfig
    console: ConsoleProtocol


def build_context(
    *,
    workspace: Path | None = None,
    config_path: Path | None = None,
    **overrides: object,
) -> CLIContext:
    """Build the run context once, from file, environment and CLI overrides."""
    root = (workspace or Path.cwd()).expanduser().resolve()
    if not root.is_dir():
        typer.echo(f"error: workspace is not a directory: {root}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    loaded = load_run_config(
        workspace_root=root,
        environ=os.environ,
        invoke_time=datetime.now(timezone.utc),
        config_path=config_path,
    )
    if isinstance(loaded, Err):
        where = f" ({loaded.error.path})" if loaded.error.path else ""
        typer.echo(f"error: {loaded.error.message}{where}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config = loaded.value.with_overrides(**overrides)
    return CLIContext(config=config, console=RichConsole(debug=config.debug))
