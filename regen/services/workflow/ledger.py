from __future__ import annotations

import json
from pathlib import Path

from regen.core.config import RunConfig
from regen.core.result import Err, Ok, Result
from regen.core.structured import StrDict, as_obj_list, as_str_dict, get_int, get_str, get_table
from regen.platform.files import atomic_write_text
from regen.services.workflow.errors import WorkflowError
from regen.services.workflow.model import GeneratedLanguage, PublishedLanguage, ReleaseRecord

LEDGER_SCHEMA = 1


def ledger_path(config: RunConfig) -> Path:
    return config.ledger_path


def _record_to_json(record: ReleaseRecord) -> StrDict:
    return {
        "title": record.title,
        "docVersion": record.doc_version,
        "generatorVersion": record.generator_version,
        "generationVersion": record.generation_version,
        "docLocation": record.doc_location,
        "languagesGenerated": {
            lang: {"version": g.version, "path": g.path}
            for lang, g in sorted(record.languages_generated.items())
        },
        "languagesPublished": {
            lang: {"packageName": p.package_name, "version": p.version, "path": p.path}
            for lang, p in sorted(record.languages_published.items())
        },
    }


def _record_from_json(obj: object, *, path: Path, index: int) -> Result[ReleaseRecord, WorkflowError]:
    def corrupt(detail: str) -> Err[WorkflowError]:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message=f"invalid ledger entry #{index}: {detail}",
                hint=str(path),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return corrupt("entry must be a JSON object")

    title = get_str(data, "title")
    doc_version = get_str(data, "docVersion")
    if title is None or doc_version is None:
        return corrupt("missing title or docVersion")

    generated: dict[str, GeneratedLanguage] = {}
    for lang, raw in (get_table(data, "languagesGenerated") or {}).items():
        d = as_str_dict(raw)
        version = get_str(d, "version") if d is not None else None
        if d is None or version is None:
            return corrupt(f"languagesGenerated.{lang} needs a version")
        generated[lang] = GeneratedLanguage(version=version, path=get_str(d, "path") or "")

    published: dict[str, PublishedLanguage] = {}
    for lang, raw in (get_table(data, "languagesPublished") or {}).items():
        d = as_str_dict(raw)
        version = get_str(d, "version") if d is not None else None
        if d is None or version is None:
            return corrupt(f"languagesPublished.{lang} needs a version")
        published[lang] = PublishedLanguage(
            package_name=get_str(d, "packageName") or "",
            version=version,
            path=get_str(d, "path") or "",
        )

    try:
        record = ReleaseRecord(
            title=title,
            doc_version=doc_version,
            generator_version=get_str(data, "generatorVersion") or "",
            generation_version=get_str(data, "generationVersion") or "",
            doc_location=get_str(data, "docLocation") or "",
            languages_generated=generated,
            languages_published=published,
        )
    except ValueError as e:
        return corrupt(str(e))
    return Ok(record)


def _read_entries(path: Path) -> Result[list[ReleaseRecord], WorkflowError]:
    """Load every ledger entry; an absent file is an empty ledger."""
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Ok([])
    except OSError as e:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message=f"failed to read release ledger: {e}",
                hint=str(path),
            )
        )

    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message=f"invalid JSON in release ledger: {e}",
                hint=str(path),
            )
        )

    data = as_str_dict(obj)
    if data is None:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message="release ledger root must be a JSON object",
                hint=str(path),
            )
        )

    schema = get_int(data, "schema")
    if schema != LEDGER_SCHEMA:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message=f"unsupported ledger schema: {schema}",
                hint=str(path),
            )
        )

    raw_entries = as_obj_list(data.get("releases"))
    if raw_entries is None:
        return Err(
            WorkflowError(
                kind="ledger_corrupt",
                message="missing releases[] in ledger",
                hint=str(path),
            )
        )

    records: list[ReleaseRecord] = []
    for i, item in enumerate(raw_entries):
        parsed = _record_from_json(item, path=path, index=i)
        if isinstance(parsed, Err):
            return parsed
        records.append(parsed.value)
    return Ok(records)


def _same_run(entry: ReleaseRecord, record: ReleaseRecord) -> bool:
    return entry.title == record.title and entry.doc_version == record.doc_version


def append(record: ReleaseRecord, *, path: Path) -> Result[None, WorkflowError]:
    """Merge `record` into the ledger at `path`.

    A record from the same run as the most recent entry (same title, i.e. same
    invoke time, and same document version) is merged into that entry, as
    happens when a run is resumed. Every other record starts a new entry, so
    the last entry only ever describes one run.
    """
    if record.is_empty:
        return Err(
            WorkflowError(
                kind="invalid_input",
                message="refusing to record a release with no generated languages",
                hint=str(path),
            )
        )

    entries = _read_entries(path)
    if isinstance(entries, Err):
        return entries
    records = entries.value

    if records and _same_run(records[-1], record):
        records[-1] = records[-1].merged_with(record)
    else:
        records.append(record)

    payload: StrDict = {
        "schema": LEDGER_SCHEMA,
        "releases": [_record_to_json(r) for r in records],
    }
    try:
        atomic_write_text(path, json.dumps(payload, indent=2) + "\n", encoding="utf-8")
    except OSError as e:
        return Err(
            WorkflowError(
                kind="ledger_write_failed",
                message=f"failed to write release ledger: {e}",
                hint=str(path),
            )
        )
    return Ok(None)


def most_recent(*, path: Path) -> Result[ReleaseRecord, WorkflowError]:
    entries = _read_entries(path)
    if isinstance(entries, Err):
        return entries
    if not entries.value:
        return Err(
            WorkflowError(
                kind="not_found",
                message="release ledger has no entries",
                hint=str(path),
            )
        )
    return Ok(entries.value[-1])
