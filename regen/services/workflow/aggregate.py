from __future__ import annotations

from collections.abc import Sequence

from regen.core.config import RunConfig
from regen.services.workflow.model import (
    RELEASE_TITLE_FORMAT,
    GeneratedLanguage,
    GenerationInfo,
    LanguageResult,
    PublishedLanguage,
    ReleaseRecord,
)


def legacy_outputs(results: Sequence[LanguageResult]) -> dict[str, str]:
    """Flatten typed per-language results into `<lang>_regenerated`-style keys."""
    out: dict[str, str] = {}
    for r in results:
        out.update(r.as_outputs())
    return out


def aggregate(
    *,
    info: GenerationInfo,
    results: Sequence[LanguageResult],
    supported_languages: Sequence[str],
    config: RunConfig,
) -> tuple[ReleaseRecord, bool]:
    """Fold one generator run into a release record.

    Languages are visited in `supported_languages` order. A language counts
    only if the generator reported it and flagged it as regenerated; it is
    published only if it was also flagged for publication.

    Returns:
        (record, anything_regenerated)
    """
    by_lang = {r.language: r for r in results}
    generated: dict[str, GeneratedLanguage] = {}
    published: dict[str, PublishedLanguage] = {}
    anything_regenerated = False

    for lang in supported_languages:
        lang_info = info.languages.get(lang)
        if lang_info is None:
            continue
        result = by_lang.get(lang)
        if result is None or not result.regenerated:
            continue

        anything_regenerated = True
        generated[lang] = GeneratedLanguage(version=lang_info.version, path=result.output_path)
        if result.published:
            published[lang] = PublishedLanguage(
                package_name=lang_info.package_name,
                version=lang_info.version,
                path=result.output_path,
            )

    record = ReleaseRecord(
        title=config.invoke_time.strftime(RELEASE_TITLE_FORMAT),
        doc_version=info.doc_version,
        generator_version=info.generator_version,
        generation_version=info.generation_version,
        doc_location=config.doc_location,
        languages_generated=generated,
        languages_published=published,
    )
    return record, anything_regenerated
