"""Subprocess execution with Result-based error handling.

Every external collaborator of the workflow (git, gh, the generator) is
driven through `run`, so failures come back as values the orchestrator can
propagate verbatim instead of exceptions.

Usage:
    result = run(["git", "rev-parse", "HEAD"], cwd=repo_root)
    match result:
        case Ok(stdout):
            print(stdout.strip())
        case Err(error):
            print(f"Failed: {error.detail()}")
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path

from regen.core.result import Err, Ok, Result

__all__ = ["ProcessError", "run"]

# Returned when the process never produced an exit status
NO_EXIT_STATUS = -1


@dataclass(frozen=True, slots=True)
class ProcessError:
    """A command that could not run, timed out, or exited non-zero.

    Attributes:
        command: argv as executed.
        returncode: Exit status, or NO_EXIT_STATUS.
        stdout: Captured standard output (may be empty).
        stderr: Captured standard error, or the reason the command never ran.
    """

    command: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    def __str__(self) -> str:
        shown = " ".join(self.command[:3]) + (" ..." if len(self.command) > 3 else "")
        return f"{shown} failed (exit {self.returncode})"

    def detail(self) -> str | None:
        """Last non-empty line of stderr, else of stdout."""
        text = self.stderr.strip() or self.stdout.strip()
        return text.splitlines()[-1] if text else None


def _failed(cmd: list[str], *, returncode: int, stdout: str = "", stderr: str = "") -> Err[ProcessError]:
    return Err(ProcessError(command=tuple(cmd), returncode=returncode, stdout=stdout, stderr=stderr))


def run(cmd: list[str], cwd: Path, *, timeout: float | None = None) -> Result[str, ProcessError]:
    """Run `cmd` in `cwd`, capturing output as text.

    Returns:
        Ok(stdout) when the command exits 0, Err(ProcessError) otherwise.
    """
    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        partial = e.stdout if isinstance(e.stdout, str) else ""
        return _failed(
            cmd,
            returncode=NO_EXIT_STATUS,
            stdout=partial,
            stderr=f"Command timed out after {timeout}s",
        )
    except OSError as e:
        return _failed(cmd, returncode=NO_EXIT_STATUS, stderr=str(e))

    if proc.returncode != 0:
        return _failed(cmd, returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)
    return Ok(proc.stdout)
