from __future__ import annotations

from dataclasses import dataclass

from regen.core.config import OperatingMode, RunConfig
from regen.core.result import Err, Ok, Result
from regen.output.console import ConsoleProtocol
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.vcs import VersionControl


@dataclass(frozen=True, slots=True)
class WorkingBranch:
    name: str
    # False when the branch came from a request opened by an earlier run
    created: bool


def resolve_branch(
    *,
    config: RunConfig,
    vcs: VersionControl,
    console: ConsoleProtocol,
) -> Result[WorkingBranch, WorkflowError]:
    """Pick the working branch for this run.

    In PR mode the branch of an already-open request is reused so repeated
    runs keep updating the same request. Creates at most one branch.
    """
    hint = ""
    if config.mode is OperatingMode.PR:
        found = vcs.find_existing_request("")
        if isinstance(found, Err):
            return found
        hint, _ = found.value

    branch = vcs.find_or_create_branch(hint)
    if isinstance(branch, Err):
        return branch

    created = not hint or branch.value != hint
    console.info(f"working branch: {branch.value}" + ("" if created else " (reused)"))
    return Ok(WorkingBranch(name=branch.value, created=created))
