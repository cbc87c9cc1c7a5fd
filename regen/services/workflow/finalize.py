from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import Protocol

from regen.core.config import OperatingMode, RunConfig
from regen.core.result import Err, Ok, Result
from regen.output.console import ConsoleProtocol
from regen.services.workflow import ledger
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.model import ReleaseRecord
from regen.services.workflow.vcs import VersionControl


class ModeFinalizer(Protocol):
    """Terminal action for one operating mode.

    Returns the outputs to merge into the run's outputs.
    """

    def __call__(self, branch: str, record: ReleaseRecord) -> Result[dict[str, str], WorkflowError]: ...


class PullRequestFinalizer:
    """Open a review request for the branch, or refresh the one already open."""

    def __init__(self, *, vcs: VersionControl, console: ConsoleProtocol) -> None:
        self._vcs = vcs
        self._console = console

    def __call__(self, branch: str, record: ReleaseRecord) -> Result[dict[str, str], WorkflowError]:
        found = self._vcs.find_existing_request(branch)
        if isinstance(found, Err):
            return found
        branch, existing = found.value

        request = self._vcs.create_or_update_request(branch, record, existing)
        if isinstance(request, Err):
            return request

        verb = "updated" if existing is not None else "opened"
        self._console.success(f"{verb} request #{request.value.number}: {request.value.url}")
        return Ok({"pull_request_url": request.value.url})


class DirectFinalizer:
    """Merge the branch into the default branch and optionally tag a release.

    A completed merge is never undone; a release failure after it is reported
    as the run's error.
    """

    def __init__(self, *, vcs: VersionControl, console: ConsoleProtocol, create_release: bool) -> None:
        self._vcs = vcs
        self._console = console
        self._create_release = create_release

    def __call__(self, branch: str, record: ReleaseRecord) -> Result[dict[str, str], WorkflowError]:
        merged = self._vcs.merge_branch(branch)
        if isinstance(merged, Err):
            return merged
        commit = merged.value
        self._console.success(f"merged {branch} at {commit[:8]}")

        if self._create_release:
            release = self._vcs.create_release(record, commit)
            if isinstance(release, Err):
                return release
            self._console.success(f"release created: {release.value}")

        return Ok({"commit_hash": commit})


def build_finalizers(
    *, config: RunConfig, vcs: VersionControl, console: ConsoleProtocol
) -> Mapping[OperatingMode, ModeFinalizer]:
    return {
        OperatingMode.PR: PullRequestFinalizer(vcs=vcs, console=console),
        OperatingMode.DIRECT: DirectFinalizer(
            vcs=vcs, console=console, create_release=config.create_release
        ),
    }


def finalize(
    *,
    config: RunConfig,
    vcs: VersionControl,
    outputs: MutableMapping[str, str],
    branch: str,
    anything_regenerated: bool,
    console: ConsoleProtocol,
) -> Result[None, WorkflowError]:
    """Publish the run's result according to `config.mode`.

    Nothing regenerated means nothing to publish: only `branch_name` is
    recorded and no version-control action is taken.
    """
    found = vcs.find_branch(branch)
    if isinstance(found, Err):
        return found
    branch = found.value
    outputs["branch_name"] = branch

    if not anything_regenerated:
        console.info("nothing regenerated; skipping publication")
        return Ok(None)

    record = ledger.most_recent(path=ledger.ledger_path(config))
    if isinstance(record, Err):
        return record

    handler = build_finalizers(config=config, vcs=vcs, console=console)[config.mode]
    delta = handler(branch, record.value)
    if isinstance(delta, Err):
        return delta

    outputs.update(delta.value)
    return Ok(None)
