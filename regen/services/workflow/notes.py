from __future__ import annotations

from regen.services.workflow.model import ReleaseRecord

# language -> (registry label, package URL template)
_REGISTRIES: dict[str, tuple[str, str]] = {
    "python": ("PyPI", "https://pypi.org/project/{package}/{version}"),
    "typescript": ("NPM", "https://www.npmjs.com/package/{package}/v/{version}"),
    "go": ("Go", "https://pkg.go.dev/{package}@v{version}"),
    "java": ("Maven Central", "https://central.sonatype.com/artifact/{package}/{version}"),
    "php": ("Composer", "https://packagist.org/packages/{package}#v{version}"),
    "ruby": ("RubyGems", "https://rubygems.org/gems/{package}/versions/{version}"),
    "csharp": ("NuGet", "https://www.nuget.org/packages/{package}/{version}"),
}

REQUEST_TITLE_PREFIX = "chore: update SDK"


def request_title(record: ReleaseRecord) -> str:
    return f"{REQUEST_TITLE_PREFIX} - generated {record.title}"


def release_tag(record: ReleaseRecord) -> str:
    """Tag for a direct-mode release.

    A single generated language (the usual single-SDK repo) is tagged
    `v<version>`; several languages share one repo, so each tag names its
    languages: `python/v1.2.0-typescript/v0.3.1`.
    """
    langs = sorted(record.languages_generated)
    if len(langs) == 1:
        return f"v{record.languages_generated[langs[0]].version.lstrip('v')}"
    return "-".join(f"{lang}/v{record.languages_generated[lang].version.lstrip('v')}" for lang in langs)


def _package_link(lang: str, package: str, version: str) -> str | None:
    registry = _REGISTRIES.get(lang)
    if registry is None or not package:
        return None
    label, template = registry
    url = template.format(package=package, version=version.lstrip("v"))
    return f"[{label} v{version.lstrip('v')}] {url}"


def render_release_notes(record: ReleaseRecord) -> str:
    """Markdown body used for review requests and releases."""
    lines: list[str] = []
    lines.append(f"## {record.title}")
    lines.append("")
    lines.append("### Changes")
    lines.append("Based on:")
    doc = f"- API document {record.doc_version}"
    if record.doc_location:
        doc += f" {record.doc_location}"
    lines.append(doc)
    gen = f"- Generator {record.generator_version}"
    if record.generation_version:
        gen += f" (generation {record.generation_version})"
    lines.append(gen)

    lines.append("")
    lines.append("### Generated")
    for lang, g in sorted(record.languages_generated.items()):
        lines.append(f"- [{lang} v{g.version.lstrip('v')}] {g.path}")

    if record.languages_published:
        lines.append("")
        lines.append("### Releases")
        for lang, p in sorted(record.languages_published.items()):
            link = _package_link(lang, p.package_name, p.version)
            if link is None:
                lines.append(f"- [{lang} v{p.version.lstrip('v')}] {p.package_name} - {p.path}")
            else:
                lines.append(f"- {link} - {p.path}")

    return "\n".join(lines).rstrip() + "\n"
