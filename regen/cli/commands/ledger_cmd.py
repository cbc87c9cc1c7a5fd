from __future__ import annotations

from pathlib import Path

import typer

from regen.cli.commands._helpers import exit_with_error
from regen.cli.context import build_context
from regen.core.result import Err
from regen.services.workflow import ledger
from regen.services.workflow.notes import render_release_notes

ledger_app = typer.Typer(add_completion=False, no_args_is_help=True)


@ledger_app.command("last")
def last(
    workspace: Path | None = typer.Option(None, "--workspace", help="SDK repository checkout"),
    path: Path | None = typer.Option(None, "--path", help="Ledger file (overrides config)"),
) -> None:
    """Print the most recent release record as markdown."""
    ctx = build_context(workspace=workspace)
    record = ledger.most_recent(path=path or ledger.ledger_path(ctx.config))
    if isinstance(record, Err):
        exit_with_error(record.error, ctx.console)
    typer.echo(render_release_notes(record.value), nl=False)
