"""Error codes for CLI exit status.

Process exit codes used by every `regen` command. The numeric values are part
of the contract with the CI job invoking the workflow and should remain stable:
- 0: Success
- 1: User error (bad flags, invalid config values)
- 2: Environment error (generator missing or too old, gh not authenticated)
- 3: Generation error (the generator ran and failed)
- 4: Version-control error (branch, push, merge, review request, release)
- 5: I/O error (ledger unreadable or unwritable)
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands."""

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    GENERATION_ERROR = 3
    VCS_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_error(self) -> bool:
        return self != ErrorCode.OK
