"""Result type for explicit error handling.

Every fallible step of the regeneration workflow returns a `Result` instead of
raising, so the orchestrator can decide at each step whether to short-circuit,
flush outputs, or release the working branch. Callers narrow with
`isinstance(result, Err)` and hand the same `Err` back up unchanged.

Usage:
    def parse_mode(raw: str) -> Result[OperatingMode, str]:
        if raw not in ("pr", "direct"):
            return Err(f"unknown mode: {raw}")
        return Ok(OperatingMode(raw))

    match parse_mode("pr"):
        case Ok(mode):
            print(mode)
        case Err(error):
            print(f"error: {error}")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeGuard, TypeVar, Union

__all__ = ["Ok", "Err", "Result", "is_ok", "is_err"]

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful step; `value` is what it produced."""

    value: T

    def unwrap(self) -> T:
        return self.value

    def unwrap_err(self) -> None:
        raise ValueError(f"called unwrap_err on Ok: {self.value!r}")


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed step; `error` is passed up verbatim."""

    error: E

    def unwrap(self) -> None:
        raise ValueError(f"called unwrap on Err: {self.error!r}")

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]


def is_ok(result: Result[T, E]) -> TypeGuard[Ok[T]]:
    return isinstance(result, Ok)


def is_err(result: Result[T, E]) -> TypeGuard[Err[E]]:
    return isinstance(result, Err)
