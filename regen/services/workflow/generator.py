from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import Protocol

from regen.core.config import RunConfig
from regen.core.result import Err, Ok, Result
from regen.core.structured import as_str_dict, get_bool, get_str, get_table
from regen.output.console import ConsoleProtocol, Style
from regen.platform.process import run as run_process
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.model import (
    GenerationInfo,
    GenerationOutcome,
    LanguageInfo,
    LanguageResult,
)
from regen.services.workflow.semver import find_version, parse_version
from regen.services.workflow.timeouts import (
    GENERATOR_QUERY_TIMEOUT_SECONDS,
    GENERATOR_RUN_TIMEOUT_SECONDS,
)

REPORT_FILE = "generation-report.json"


class Generator(Protocol):
    """The external SDK generator, seen from the workflow."""

    def resolve_version(self, pinned: str) -> Result[str, WorkflowError]: ...

    def supported_languages(self) -> Result[tuple[str, ...], WorkflowError]: ...

    def run(self) -> Result[GenerationOutcome, WorkflowError]: ...


def parse_report(payload: str, *, source: str) -> Result[GenerationOutcome, WorkflowError]:
    """Turn the generator's JSON report into a typed outcome.

    An empty object (`{}`) means the generator had nothing to report.
    """
    try:
        obj: object = json.loads(payload)
    except json.JSONDecodeError as e:
        return Err(
            WorkflowError(
                kind="generation_failed",
                message=f"invalid JSON in generation report: {e}",
                hint=source,
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            WorkflowError(
                kind="generation_failed",
                message="generation report root must be a JSON object",
                hint=source,
            )
        )
    if not data:
        return Ok(GenerationOutcome(info=None))

    doc_version = get_str(data, "docVersion")
    generator_version = get_str(data, "generatorVersion")
    if doc_version is None or generator_version is None:
        return Err(
            WorkflowError(
                kind="generation_failed",
                message="generation report is missing docVersion or generatorVersion",
                hint=source,
            )
        )

    infos: dict[str, LanguageInfo] = {}
    results: list[LanguageResult] = []
    # dicts keep the report's order; results follow it
    for lang, raw in (get_table(data, "languages") or {}).items():
        d = as_str_dict(raw)
        if d is None:
            continue
        version = get_str(d, "version")
        if version is None:
            continue
        infos[lang] = LanguageInfo(version=version, package_name=get_str(d, "packageName") or "")
        results.append(
            LanguageResult(
                language=lang,
                regenerated=get_bool(d, "regenerated") is True,
                output_path=get_str(d, "directory") or ".",
                published=get_bool(d, "publish") is True,
            )
        )

    info = GenerationInfo(
        doc_version=doc_version,
        generator_version=generator_version,
        generation_version=get_str(data, "generationVersion") or "",
        languages=infos,
    )
    return Ok(GenerationOutcome(info=info, languages=tuple(results)))


class GeneratorCli:
    """Drives the generator executable through subprocesses.

    - `<bin> --version` reports the installed version
    - `<bin> generate supported-targets` lists languages in a stable order
    - `<bin> run --schema <doc> --out <dir> --report <file>` generates and
      writes a JSON report
    """

    def __init__(self, *, config: RunConfig, console: ConsoleProtocol) -> None:
        self._config = config
        self._console = console
        self._root = config.workspace_root
        self._bin = config.generator_bin

    def _ensure_available(self) -> Result[None, WorkflowError]:
        if shutil.which(self._bin) is None:
            return Err(
                WorkflowError(
                    kind="generator_missing",
                    message=f"{self._bin}: missing",
                    hint="Install the generator CLI or set REGEN_BIN",
                )
            )
        return Ok(None)

    def resolve_version(self, pinned: str) -> Result[str, WorkflowError]:
        """Return the version this run will use.

        "latest" (or empty) accepts whatever is installed; an explicit pin must
        match the installed binary exactly.
        """
        ok = self._ensure_available()
        if isinstance(ok, Err):
            return ok

        cmd = [self._bin, "--version"]
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_process(cmd, cwd=self._root, timeout=GENERATOR_QUERY_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                WorkflowError(
                    kind="generator_missing",
                    message=f"failed to query {self._bin} version",
                    hint=result.error.detail(),
                )
            )

        installed = find_version(result.value)
        if installed is None:
            return Err(
                WorkflowError(
                    kind="generator_missing",
                    message=f"unexpected {self._bin} --version output",
                    hint=result.value.strip() or None,
                )
            )

        wanted = pinned.strip()
        if wanted in ("", "latest"):
            return Ok(str(installed))

        pin = parse_version(wanted)
        if pin is None:
            return Err(
                WorkflowError(
                    kind="config_invalid",
                    message=f"invalid pinned generator version: {wanted!r}",
                )
            )
        if pin != installed:
            return Err(
                WorkflowError(
                    kind="generator_missing",
                    message=f"pinned generator version {pin} is not installed",
                    hint=f"installed: {installed}",
                )
            )
        return Ok(str(pin))

    def supported_languages(self) -> Result[tuple[str, ...], WorkflowError]:
        cmd = [self._bin, "generate", "supported-targets"]
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_process(cmd, cwd=self._root, timeout=GENERATOR_QUERY_TIMEOUT_SECONDS)
        if isinstance(result, Err):
            return Err(
                WorkflowError(
                    kind="generation_failed",
                    message="failed to list supported languages",
                    hint=result.error.detail(),
                )
            )

        langs: list[str] = []
        for chunk in result.value.replace(",", "\n").splitlines():
            lang = chunk.strip()
            if lang and lang not in langs:
                langs.append(lang)
        return Ok(tuple(langs))

    def run(self) -> Result[GenerationOutcome, WorkflowError]:
        with tempfile.TemporaryDirectory(prefix="regen-") as tmp:
            report = Path(tmp) / REPORT_FILE
            cmd = [
                self._bin,
                "run",
                "--schema",
                self._config.doc_location,
                "--out",
                str(self._root),
                "--report",
                str(report),
            ]
            self._console.print(" ".join(cmd[:2]) + " ...", Style.DIM)
            result = run_process(cmd, cwd=self._root, timeout=GENERATOR_RUN_TIMEOUT_SECONDS)
            if isinstance(result, Err):
                return Err(
                    WorkflowError(
                        kind="generation_failed",
                        message=f"generator failed (exit {result.error.returncode})",
                        hint=result.error.detail(),
                    )
                )

            try:
                payload = report.read_text(encoding="utf-8")
            except OSError as e:
                return Err(
                    WorkflowError(
                        kind="generation_failed",
                        message=f"generator did not write a report: {e}",
                        hint=str(report),
                    )
                )

        return parse_report(payload, source=REPORT_FILE)
