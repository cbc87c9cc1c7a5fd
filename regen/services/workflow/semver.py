from __future__ import annotations

import re
from dataclasses import dataclass

from regen.core.result import Err, Ok, Result
from regen.services.workflow.errors import WorkflowError

_SEMVER_RE = re.compile(
    r"v?(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?"
)

# Oldest generator that writes the per-language report this workflow reads.
MINIMUM_GENERATOR_VERSION = "1.161.0"


@dataclass(frozen=True, slots=True)
class SemVer:
    major: int
    minor: int
    patch: int
    prerelease: str | None = None

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        return f"{base}-{self.prerelease}" if self.prerelease else base

    def _key(self) -> tuple[int, int, int, int, tuple[tuple[int, int | str], ...]]:
        # A prerelease sorts before its release: 1.2.0-rc.1 < 1.2.0
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, 1, ())
        parts: list[tuple[int, int | str]] = []
        for ident in self.prerelease.split("."):
            parts.append((0, int(ident)) if ident.isdigit() else (1, ident))
        return (self.major, self.minor, self.patch, 0, tuple(parts))

    def __lt__(self, other: SemVer) -> bool:
        return self._key() < other._key()

    def __le__(self, other: SemVer) -> bool:
        return self._key() <= other._key()

    def __gt__(self, other: SemVer) -> bool:
        return self._key() > other._key()

    def __ge__(self, other: SemVer) -> bool:
        return self._key() >= other._key()


def parse_version(text: str) -> SemVer | None:
    """Parse a full version string such as "1.161.0" or "v2.0.0-beta.1"."""
    m = _SEMVER_RE.fullmatch(text.strip())
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4))


def find_version(text: str) -> SemVer | None:
    """Return the first version embedded in free text (e.g. `--version` output)."""
    for m in _SEMVER_RE.finditer(text):
        return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4))
    return None


def ensure_minimum_version(
    resolved: str, minimum: str = MINIMUM_GENERATOR_VERSION
) -> Result[SemVer, WorkflowError]:
    floor = parse_version(minimum)
    if floor is None:
        raise AssertionError(f"invalid minimum version: {minimum}")

    current = parse_version(resolved)
    if current is None:
        return Err(
            WorkflowError(
                kind="generator_too_old",
                message=f"cannot parse generator version: {resolved!r}",
                hint=f"this workflow requires at least version {floor} of the generator",
            )
        )

    if current < floor:
        return Err(
            WorkflowError(
                kind="generator_too_old",
                message=f"workflow requires at least version {floor} of the generator",
                hint=f"resolved version is {current}; pin a newer generator version",
            )
        )
    return Ok(current)
