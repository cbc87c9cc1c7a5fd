"""Workflow outputs channel.

`WorkflowOutputs` collects string key/value pairs during a run and hands them
to the invoking CI environment in one flush. With an output file (GitHub
Actions' `$GITHUB_OUTPUT`) the pairs are appended in its `key=value` format,
using the heredoc form for multiline values. Without one they are printed as
`key=value` lines on stdout.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator, Mapping, MutableMapping
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO
from uuid import uuid4

from regen.core.result import Err, Ok, Result

__all__ = ["OutputsError", "WorkflowOutputs", "render_outputs"]


@dataclass(frozen=True, slots=True)
class OutputsError:
    message: str
    path: Path | None = None


def _render_pair(key: str, value: str) -> str:
    if "\n" not in value:
        return f"{key}={value}\n"
    delimiter = f"ghadelimiter_{uuid4().hex}"
    return f"{key}<<{delimiter}\n{value}\n{delimiter}\n"


def render_outputs(values: Mapping[str, str]) -> str:
    """Render outputs in sorted key order."""
    return "".join(_render_pair(k, values[k]) for k in sorted(values))


class WorkflowOutputs(MutableMapping[str, str]):
    """Mutable str -> str mapping flushed once at the end of a run.

    Attributes:
        path: Output file to append to; None writes to `stream`.
        flushed: True once `flush` has written the outputs.
    """

    def __init__(self, *, path: Path | None = None, stream: TextIO | None = None) -> None:
        self.path = path
        self._stream = stream
        self._values: dict[str, str] = {}
        self.flushed = False

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"WorkflowOutputs({self._values!r})"

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    def flush(self) -> Result[None, OutputsError]:
        """Write the outputs; later calls are no-ops."""
        if self.flushed:
            return Ok(None)

        rendered = render_outputs(self._values)
        if self.path is None:
            stream = self._stream if self._stream is not None else sys.stdout
            stream.write(rendered)
            stream.flush()
            self.flushed = True
            return Ok(None)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(rendered)
        except OSError as e:
            return Err(OutputsError(message=f"failed to write outputs: {e}", path=self.path))

        self.flushed = True
        return Ok(None)
