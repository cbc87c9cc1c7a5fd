from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

WorkflowErrorKind = Literal[
    "invalid_input",
    "config_invalid",
    "generator_missing",
    "generator_too_old",
    "generation_failed",
    "not_found",
    "ledger_corrupt",
    "ledger_write_failed",
    "vcs_failed",
    "merge_failed",
    "release_failed",
    "request_failed",
]


@dataclass(frozen=True, slots=True)
class WorkflowError:
    """Error payload shared by every workflow step.

    Collaborator failures keep the collaborator's own stderr in `hint`.
    """

    kind: WorkflowErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
