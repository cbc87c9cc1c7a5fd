from __future__ import annotations

from regen.services.workflow.model import GeneratedLanguage, PublishedLanguage, ReleaseRecord
from regen.services.workflow.notes import release_tag, render_release_notes, request_title


def _record(*, languages: dict[str, str], published: tuple[str, ...] = ()) -> ReleaseRecord:
    return ReleaseRecord(
        title="2024-05-17 09:30:00",
        doc_version="0.3.0",
        generator_version="1.180.2",
        generation_version="2.311.0",
        doc_location="openapi.yaml",
        languages_generated={
            lang: GeneratedLanguage(version=v, path=f"out/{lang}") for lang, v in languages.items()
        },
        languages_published={
            lang: PublishedLanguage(package_name="acme-sdk", version=languages[lang], path=f"out/{lang}")
            for lang in published
        },
    )


def test_request_title_names_the_run() -> None:
    record = _record(languages={"python": "1.2.0"})
    assert request_title(record) == "chore: update SDK - generated 2024-05-17 09:30:00"


def test_release_tag_single_language() -> None:
    assert release_tag(_record(languages={"python": "v1.2.0"})) == "v1.2.0"


def test_release_tag_multiple_languages_is_sorted() -> None:
    record = _record(languages={"typescript": "0.4.0", "python": "1.2.0"})
    assert release_tag(record) == "python/v1.2.0-typescript/v0.4.0"


def test_release_notes_list_generated_and_published() -> None:
    notes = render_release_notes(_record(languages={"python": "1.2.0"}, published=("python",)))

    assert notes.startswith("## 2024-05-17 09:30:00\n")
    assert "- API document 0.3.0 openapi.yaml" in notes
    assert "- Generator 1.180.2 (generation 2.311.0)" in notes
    assert "- [python v1.2.0] out/python" in notes
    assert "- [PyPI v1.2.0] https://pypi.org/project/acme-sdk/1.2.0 - out/python" in notes
    assert notes.endswith("\n")


def test_release_notes_without_publication_omit_releases() -> None:
    notes = render_release_notes(_record(languages={"go": "0.1.0"}))
    assert "### Releases" not in notes


def test_release_notes_unknown_registry_falls_back_to_package_name() -> None:
    notes = render_release_notes(_record(languages={"swift": "0.2.0"}, published=("swift",)))
    assert "- [swift v0.2.0] acme-sdk - out/swift" in notes
