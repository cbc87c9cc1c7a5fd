from __future__ import annotations

from pathlib import Path

import typer

from regen.cli.commands._helpers import exit_with_error
from regen.cli.context import build_context
from regen.core.config import OperatingMode
from regen.core.result import Err
from regen.output.outputs import WorkflowOutputs
from regen.services.workflow.generator import GeneratorCli
from regen.services.workflow.orchestrator import run_workflow
from regen.services.workflow.vcs import GitHubVersionControl


def run(
    workspace: Path | None = typer.Option(
        None, "--workspace", help="SDK repository checkout (default: current directory)"
    ),
    config_path: Path | None = typer.Option(
        None, "--config", help="TOML file with a [workflow] table"
    ),
    mode: OperatingMode | None = typer.Option(
        None, "--mode", case_sensitive=False, help="pr: open a pull request; direct: merge"
    ),
    debug: bool | None = typer.Option(
        None, "--debug/--no-debug", help="Keep the working branch and print debug output"
    ),
    create_release: bool | None = typer.Option(
        None, "--create-release/--no-create-release", help="Tag a release after a direct merge"
    ),
    generator_version: str | None = typer.Option(
        None, "--generator-version", help="Pinned generator version, or 'latest'"
    ),
    doc: str | None = typer.Option(None, "--doc", help="API document location"),
) -> None:
    """Regenerate the SDKs and publish the result."""
    ctx = build_context(
        workspace=workspace,
        config_path=config_path,
        mode=mode,
        debug=debug,
        create_release=create_release,
        pinned_generator_version=generator_version,
        doc_location=doc,
    )
    config = ctx.config
    ctx.console.debug(f"config: {config}")

    result = run_workflow(
        config=config,
        vcs=GitHubVersionControl(config=config, console=ctx.console),
        generator=GeneratorCli(config=config, console=ctx.console),
        console=ctx.console,
        outputs=WorkflowOutputs(path=config.output_file),
    )
    if isinstance(result, Err):
        exit_with_error(result.error, ctx.console)
