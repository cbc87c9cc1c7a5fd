"""Top-level sequencing of one regeneration run.

    resolve generator version -> check version floor -> resolve branch
    -> generate -> aggregate -> append ledger -> commit + push -> finalize

Each step short-circuits the rest on error. The working branch is held by a
`BranchLease` from the moment it is resolved, so every exit path after that
point goes through the same cleanup. Outputs are flushed exactly once, on
every exit path.
"""

from __future__ import annotations

from types import TracebackType

from regen.core.config import OperatingMode, RunConfig
from regen.core.result import Err, Ok, Result
from regen.output.console import ConsoleProtocol
from regen.output.outputs import WorkflowOutputs
from regen.services.workflow import ledger
from regen.services.workflow.aggregate import aggregate, legacy_outputs
from regen.services.workflow.branch import WorkingBranch, resolve_branch
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.finalize import finalize
from regen.services.workflow.generator import Generator
from regen.services.workflow.semver import MINIMUM_GENERATOR_VERSION, ensure_minimum_version
from regen.services.workflow.vcs import VersionControl


class BranchLease:
    """Ownership of the working branch for the duration of a run.

    Deletion is armed on entry and runs on exit unless `keep()` was called.
    A disabled lease (debug mode) never deletes. Deletion failures are
    reported as warnings and never replace the run's own outcome.
    """

    def __init__(
        self,
        *,
        vcs: VersionControl,
        branch: str,
        console: ConsoleProtocol,
        enabled: bool = True,
    ) -> None:
        self.branch = branch
        self._vcs = vcs
        self._console = console
        self._enabled = enabled
        self._kept = False

    def keep(self) -> None:
        self._kept = True

    def __enter__(self) -> BranchLease:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._kept:
            return
        if not self._enabled:
            self._console.debug(f"debug mode: keeping branch {self.branch}")
            return

        deleted = self._vcs.delete_branch(self.branch)
        if isinstance(deleted, Err):
            self._console.warning(f"failed to delete branch {self.branch}: {deleted.error.pretty()}")
        else:
            self._console.debug(f"deleted branch {self.branch}")


def _should_keep_branch(*, config: RunConfig, branch: WorkingBranch, anything_regenerated: bool) -> bool:
    # DIRECT branches are scaffolding; PR branches back a request, either one
    # opened this run or one inherited from an earlier run
    if config.mode is not OperatingMode.PR:
        return False
    return anything_regenerated or not branch.created


def _run_on_branch(
    *,
    config: RunConfig,
    vcs: VersionControl,
    generator: Generator,
    console: ConsoleProtocol,
    outputs: WorkflowOutputs,
    branch: WorkingBranch,
    lease: BranchLease,
) -> Result[None, WorkflowError]:
    console.header("Generate")
    outcome = generator.run()
    if isinstance(outcome, Err):
        return outcome
    outputs.update(legacy_outputs(outcome.value.languages))

    anything_regenerated = False
    info = outcome.value.info
    if info is not None:
        supported = generator.supported_languages()
        if isinstance(supported, Err):
            return supported

        record, anything_regenerated = aggregate(
            info=info,
            results=outcome.value.languages,
            supported_languages=supported.value,
            config=config,
        )

        if anything_regenerated:
            appended = ledger.append(record, path=ledger.ledger_path(config))
            if isinstance(appended, Err):
                return appended
            console.success(f"recorded release {record.title} ({', '.join(record.languages_generated)})")

            pushed = vcs.commit_and_push(
                branch.name,
                doc_version=info.doc_version,
                generator_version=info.generator_version,
            )
            if isinstance(pushed, Err):
                return pushed

    console.header("Finalize")
    finalized = finalize(
        config=config,
        vcs=vcs,
        outputs=outputs,
        branch=branch.name,
        anything_regenerated=anything_regenerated,
        console=console,
    )
    if isinstance(finalized, Err):
        return finalized

    if _should_keep_branch(config=config, branch=branch, anything_regenerated=anything_regenerated):
        lease.keep()
    return Ok(None)


def _run(
    *,
    config: RunConfig,
    vcs: VersionControl,
    generator: Generator,
    console: ConsoleProtocol,
    outputs: WorkflowOutputs,
) -> Result[None, WorkflowError]:
    console.header("Prepare")
    resolved = generator.resolve_version(config.pinned_generator_version)
    if isinstance(resolved, Err):
        return resolved
    outputs["resolved_generator_version"] = resolved.value

    floor = ensure_minimum_version(resolved.value, MINIMUM_GENERATOR_VERSION)
    if isinstance(floor, Err):
        return floor
    console.info(f"generator version: {floor.value}")

    branch = resolve_branch(config=config, vcs=vcs, console=console)
    if isinstance(branch, Err):
        return branch

    with BranchLease(
        vcs=vcs,
        branch=branch.value.name,
        console=console,
        enabled=not config.debug,
    ) as lease:
        return _run_on_branch(
            config=config,
            vcs=vcs,
            generator=generator,
            console=console,
            outputs=outputs,
            branch=branch.value,
            lease=lease,
        )


def run_workflow(
    *,
    config: RunConfig,
    vcs: VersionControl,
    generator: Generator,
    console: ConsoleProtocol,
    outputs: WorkflowOutputs,
) -> Result[None, WorkflowError]:
    """Execute one regeneration run in `config.mode`.

    Returns:
        Ok(None) on success, or the first error encountered. `outputs` is
        flushed before returning either way.
    """
    try:
        result = _run(
            config=config,
            vcs=vcs,
            generator=generator,
            console=console,
            outputs=outputs,
        )
    finally:
        flushed = outputs.flush()
        if isinstance(flushed, Err):
            console.warning(flushed.error.message)

    if isinstance(result, Ok):
        console.success(f"workflow complete ({config.mode})")
    return result
