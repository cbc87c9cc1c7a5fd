from __future__ import annotations

import json
import re
from time import sleep
from typing import Protocol

from regen.core.config import RunConfig
from regen.core.result import Err, Ok, Result
from regen.core.structured import as_obj_list, as_str_dict, get_int, get_str
from regen.output.console import ConsoleProtocol, Style
from regen.platform.process import ProcessError
from regen.platform.process import run as run_process
from regen.services.workflow.errors import WorkflowError, WorkflowErrorKind
from regen.services.workflow.model import ReleaseRecord, ReviewRequest
from regen.services.workflow.notes import (
    REQUEST_TITLE_PREFIX,
    release_tag,
    render_release_notes,
    request_title,
)
from regen.services.workflow.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
    GIT_NETWORK_TIMEOUT_SECONDS,
    GIT_TIMEOUT_SECONDS,
)

BRANCH_PREFIX = "regen/sdk-"

_PR_NUMBER_RE = re.compile(r"/pull/(\d+)\s*$")


class VersionControl(Protocol):
    """Branch, commit and review-request operations the workflow relies on."""

    def find_existing_request(
        self, branch: str
    ) -> Result[tuple[str, ReviewRequest | None], WorkflowError]: ...

    def find_or_create_branch(self, hint: str) -> Result[str, WorkflowError]: ...

    def find_branch(self, branch: str) -> Result[str, WorkflowError]: ...

    def delete_branch(self, branch: str) -> Result[None, WorkflowError]: ...

    def commit_and_push(
        self, branch: str, *, doc_version: str, generator_version: str
    ) -> Result[str, WorkflowError]: ...

    def create_or_update_request(
        self, branch: str, record: ReleaseRecord, existing: ReviewRequest | None
    ) -> Result[ReviewRequest, WorkflowError]: ...

    def merge_branch(self, branch: str) -> Result[str, WorkflowError]: ...

    def create_release(self, record: ReleaseRecord, commit: str) -> Result[str, WorkflowError]: ...


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "http 429",
        "http 502",
        "http 503",
        "http 504",
    )
    return any(marker in text for marker in markers)


def commit_message(*, doc_version: str, generator_version: str) -> str:
    return f"ci: regenerated with API document {doc_version}, generator {generator_version}"


def parse_request_list(
    payload: str, *, branch: str
) -> Result[ReviewRequest | None, WorkflowError]:
    """Pick the newest open request opened by this automation.

    With `branch` set only that head branch matches; otherwise any head branch
    carrying the automation's prefix does.
    """
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(WorkflowError(kind="vcs_failed", message=f"invalid JSON from gh pr list: {e}"))

    raw = as_obj_list(obj)
    if raw is None:
        return Err(WorkflowError(kind="vcs_failed", message="unexpected gh pr list payload"))

    best: ReviewRequest | None = None
    for item in raw:
        d = as_str_dict(item)
        if d is None:
            continue
        number = get_int(d, "number")
        head = get_str(d, "headRefName")
        url = get_str(d, "url")
        title = get_str(d, "title") or ""
        if number is None or head is None or url is None:
            continue
        if branch and head != branch:
            continue
        if not branch and not head.startswith(BRANCH_PREFIX):
            continue
        if not title.startswith(REQUEST_TITLE_PREFIX):
            continue
        if best is None or number > best.number:
            best = ReviewRequest(
                number=number, url=url, branch=head, title=title, body=get_str(d, "body") or ""
            )
    return Ok(best)


class GitHubVersionControl:
    """VersionControl backed by the local git checkout and the gh CLI."""

    def __init__(self, *, config: RunConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console
        self._root = config.workspace_root
        self._default = config.default_branch

    # -- plumbing -----------------------------------------------------------

    def _repo_args(self) -> list[str]:
        return ["--repo", self._config.repo_slug] if self._config.repo_slug else []

    def _git(
        self,
        args: list[str],
        *,
        kind: WorkflowErrorKind = "vcs_failed",
        network: bool = False,
    ) -> Result[str, WorkflowError]:
        cmd = ["git", *args]
        self._console.print(" ".join(cmd[:4]), Style.DIM)
        timeout = GIT_NETWORK_TIMEOUT_SECONDS if network else GIT_TIMEOUT_SECONDS
        result = run_process(cmd, cwd=self._root, timeout=timeout)
        if isinstance(result, Err):
            return Err(
                WorkflowError(
                    kind=kind,
                    message=f"git failed: {' '.join(cmd[:3])}",
                    hint=result.error.detail(),
                )
            )
        return result

    def _gh(self, args: list[str], *, kind: WorkflowErrorKind, message: str) -> Result[str, WorkflowError]:
        cmd = ["gh", *args, *self._repo_args()]
        self._console.print(" ".join(cmd[:3]) + " ...", Style.DIM)
        result = run_process(cmd, cwd=self._root, timeout=GH_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(WorkflowError(kind=kind, message=message, hint=result.error.detail()))
        return result

    def _gh_read(self, args: list[str], *, message: str) -> Result[str, WorkflowError]:
        cmd = ["gh", *args, *self._repo_args()]
        attempts = max(1, GH_READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            result = run_process(cmd, cwd=self._root, timeout=GH_TIMEOUT_SECONDS)
            if isinstance(result, Ok):
                return result

            error = result.error
            if attempt < attempts - 1 and _is_transient_gh_error(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue
            return Err(WorkflowError(kind="vcs_failed", message=message, hint=error.detail()))

        return Err(WorkflowError(kind="vcs_failed", message=message))

    def _remote_branch_exists(self, branch: str) -> Result[bool, WorkflowError]:
        listed = self._git(["ls-remote", "--heads", "origin", branch], network=True)
        if isinstance(listed, Err):
            return listed
        return Ok(bool(listed.value.strip()))

    # -- VersionControl -----------------------------------------------------

    def find_existing_request(
        self, branch: str
    ) -> Result[tuple[str, ReviewRequest | None], WorkflowError]:
        args = [
            "pr",
            "list",
            "--state",
            "open",
            "--base",
            self._default,
            "--limit",
            "100",
            "--json",
            "number,url,headRefName,title,body",
        ]
        if branch:
            args.extend(["--head", branch])
        listed = self._gh_read(args, message="failed to list open pull requests")
        if isinstance(listed, Err):
            return listed

        found = parse_request_list(listed.value, branch=branch)
        if isinstance(found, Err):
            return found
        if found.value is None:
            return Ok((branch, None))
        self._console.print(f"found open request #{found.value.number}: {found.value.url}", Style.DIM)
        return Ok((found.value.branch, found.value))

    def find_or_create_branch(self, hint: str) -> Result[str, WorkflowError]:
        if hint:
            exists = self._remote_branch_exists(hint)
            if isinstance(exists, Err):
                return exists
            if exists.value:
                fetched = self._git(["fetch", "origin", hint], network=True)
                if isinstance(fetched, Err):
                    return fetched
                checked = self._git(["checkout", "-B", hint, f"origin/{hint}"])
                if isinstance(checked, Err):
                    return checked
                return Ok(hint)
            self._console.print(f"branch {hint} no longer exists; creating a new one", Style.DIM)

        branch = f"{BRANCH_PREFIX}{int(self._config.invoke_time.timestamp())}"
        fetched = self._git(["fetch", "origin", self._default], network=True)
        if isinstance(fetched, Err):
            return fetched
        created = self._git(["checkout", "-b", branch, f"origin/{self._default}"])
        if isinstance(created, Err):
            return created
        return Ok(branch)

    def find_branch(self, branch: str) -> Result[str, WorkflowError]:
        found = self._git(["rev-parse", "--verify", "--quiet", f"refs/heads/{branch}"], kind="not_found")
        if isinstance(found, Err):
            return Err(
                WorkflowError(kind="not_found", message=f"branch not found: {branch}", hint=found.error.hint)
            )
        return Ok(branch)

    def delete_branch(self, branch: str) -> Result[None, WorkflowError]:
        for args, network in (
            (["checkout", self._default], False),
            (["branch", "-D", branch], False),
        ):
            result = self._git(args, network=network)
            if isinstance(result, Err):
                return result

        exists = self._remote_branch_exists(branch)
        if isinstance(exists, Err):
            return exists
        if not exists.value:
            return Ok(None)

        pushed = self._git(["push", "origin", "--delete", branch], network=True)
        if isinstance(pushed, Err):
            return pushed
        return Ok(None)

    def commit_and_push(
        self, branch: str, *, doc_version: str, generator_version: str
    ) -> Result[str, WorkflowError]:
        added = self._git(["add", "-A"])
        if isinstance(added, Err):
            return added

        status = self._git(["status", "--porcelain"])
        if isinstance(status, Err):
            return status

        if status.value.strip():
            message = commit_message(doc_version=doc_version, generator_version=generator_version)
            committed = self._git(["commit", "-m", message])
            if isinstance(committed, Err):
                return Err(
                    WorkflowError(
                        kind="vcs_failed",
                        message="git commit failed",
                        hint=committed.error.hint or "Configure git user.name/user.email, then retry.",
                    )
                )
        else:
            self._console.print("nothing to commit", Style.DIM)

        pushed = self._git(["push", "-u", "origin", branch], network=True)
        if isinstance(pushed, Err):
            return pushed

        head = self._git(["rev-parse", "HEAD"])
        if isinstance(head, Err):
            return head
        return Ok(head.value.strip())

    def create_or_update_request(
        self, branch: str, record: ReleaseRecord, existing: ReviewRequest | None
    ) -> Result[ReviewRequest, WorkflowError]:
        title = request_title(record)
        body = render_release_notes(record)

        if existing is not None:
            if existing.title == title and existing.body.strip() == body.strip():
                self._console.print(f"request #{existing.number} already up to date", Style.DIM)
                return Ok(existing)
            edited = self._gh(
                ["pr", "edit", str(existing.number), "--title", title, "--body", body],
                kind="request_failed",
                message=f"failed to update pull request #{existing.number}",
            )
            if isinstance(edited, Err):
                return edited
            return Ok(
                ReviewRequest(number=existing.number, url=existing.url, branch=branch, title=title, body=body)
            )

        created = self._gh(
            ["pr", "create", "--base", self._default, "--head", branch, "--title", title, "--body", body],
            kind="request_failed",
            message="failed to create pull request",
        )
        if isinstance(created, Err):
            return created

        url = created.value.strip().splitlines()[-1] if created.value.strip() else ""
        m = _PR_NUMBER_RE.search(url)
        if m is None:
            return Err(
                WorkflowError(kind="request_failed", message="unexpected gh pr create output", hint=url or None)
            )
        return Ok(ReviewRequest(number=int(m.group(1)), url=url, branch=branch, title=title, body=body))

    def merge_branch(self, branch: str) -> Result[str, WorkflowError]:
        steps: tuple[tuple[list[str], bool], ...] = (
            (["fetch", "origin", self._default], True),
            (["checkout", self._default], False),
            (["merge", "--ff-only", f"origin/{self._default}"], False),
            (["merge", "--no-edit", branch], False),
            (["push", "origin", self._default], True),
        )
        for args, network in steps:
            result = self._git(args, kind="merge_failed", network=network)
            if isinstance(result, Err):
                return result

        head = self._git(["rev-parse", "HEAD"], kind="merge_failed")
        if isinstance(head, Err):
            return head
        return Ok(head.value.strip())

    def create_release(self, record: ReleaseRecord, commit: str) -> Result[str, WorkflowError]:
        tag = release_tag(record)
        created = self._gh(
            [
                "release",
                "create",
                tag,
                "--target",
                commit,
                "--title",
                tag,
                "--notes",
                render_release_notes(record),
            ],
            kind="release_failed",
            message=f"failed to create release {tag}",
        )
        if isinstance(created, Err):
            return created
        return Ok(created.value.strip())
