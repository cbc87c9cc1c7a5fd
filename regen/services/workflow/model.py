from __future__ import annotations

from dataclasses import dataclass, field

from regen.core.config import OperatingMode

__all__ = [
    "GeneratedLanguage",
    "GenerationInfo",
    "GenerationOutcome",
    "LanguageInfo",
    "LanguageResult",
    "OperatingMode",
    "PublishedLanguage",
    "ReleaseRecord",
    "ReviewRequest",
]

RELEASE_TITLE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass(frozen=True, slots=True)
class LanguageInfo:
    """What the generator reports for one target language."""

    version: str
    package_name: str


@dataclass(frozen=True, slots=True)
class GenerationInfo:
    doc_version: str
    generator_version: str
    generation_version: str
    languages: dict[str, LanguageInfo] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class LanguageResult:
    """Per-language outcome of one generator run."""

    language: str
    regenerated: bool
    output_path: str
    published: bool = False

    def as_outputs(self) -> dict[str, str]:
        """Flat keys consumed by downstream CI steps."""
        out = {
            f"{self.language}_regenerated": "true" if self.regenerated else "false",
            f"{self.language}_directory": self.output_path,
        }
        if self.published:
            out[f"publish_{self.language}"] = "true"
        return out


@dataclass(frozen=True, slots=True)
class GenerationOutcome:
    """Typed result of invoking the generator.

    `info` is None when the generator ran but had nothing to report.
    """

    info: GenerationInfo | None
    languages: tuple[LanguageResult, ...] = ()


@dataclass(frozen=True, slots=True)
class GeneratedLanguage:
    version: str
    path: str


@dataclass(frozen=True, slots=True)
class PublishedLanguage:
    package_name: str
    version: str
    path: str


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """One entry of the release ledger.

    Every published language must also be a generated language.
    """

    title: str
    doc_version: str
    generator_version: str
    generation_version: str
    doc_location: str
    languages_generated: dict[str, GeneratedLanguage] = field(default_factory=dict)
    languages_published: dict[str, PublishedLanguage] = field(default_factory=dict)

    def __post_init__(self) -> None:
        stray = sorted(set(self.languages_published) - set(self.languages_generated))
        if stray:
            raise ValueError(f"published languages not generated: {', '.join(stray)}")

    @property
    def is_empty(self) -> bool:
        return not self.languages_generated

    def merged_with(self, newer: ReleaseRecord) -> ReleaseRecord:
        """Fold a later record for the same document version into this one.

        Title and provenance are kept; language entries from `newer` win.
        """
        return ReleaseRecord(
            title=self.title,
            doc_version=self.doc_version,
            generator_version=self.generator_version,
            generation_version=self.generation_version,
            doc_location=self.doc_location,
            languages_generated={**self.languages_generated, **newer.languages_generated},
            languages_published={**self.languages_published, **newer.languages_published},
        )


@dataclass(frozen=True, slots=True)
class ReviewRequest:
    """An open pull request created by this automation."""

    number: int
    url: str
    branch: str
    title: str
    body: str = ""
