from __future__ import annotations

from regen.core.result import Err, Ok
from regen.services.workflow.semver import (
    SemVer,
    ensure_minimum_version,
    find_version,
    parse_version,
)


def test_parse_version_accepts_v_prefix_and_prerelease() -> None:
    assert parse_version("1.161.0") == SemVer(1, 161, 0)
    assert parse_version("v2.0.0-beta.1") == SemVer(2, 0, 0, "beta.1")
    assert parse_version("1.161") is None
    assert parse_version("speakeasy 1.161.0") is None


def test_find_version_scans_free_text() -> None:
    assert find_version("speakeasy version 1.180.2 (abc123)") == SemVer(1, 180, 2)
    assert find_version("no version here") is None


def test_prerelease_sorts_before_release() -> None:
    assert SemVer(1, 2, 0, "rc.1") < SemVer(1, 2, 0)
    assert SemVer(1, 2, 0, "rc.2") > SemVer(1, 2, 0, "rc.1")
    assert SemVer(1, 161, 0) >= SemVer(1, 160, 9)


def test_ensure_minimum_version_accepts_floor_and_newer() -> None:
    at_floor = ensure_minimum_version("1.161.0", "1.161.0")
    assert isinstance(at_floor, Ok)
    assert str(at_floor.value) == "1.161.0"
    assert isinstance(ensure_minimum_version("v1.200.1", "1.161.0"), Ok)


def test_ensure_minimum_version_rejects_older() -> None:
    result = ensure_minimum_version("1.160.9", "1.161.0")
    assert isinstance(result, Err)
    assert result.error.kind == "generator_too_old"
    assert result.error.message == "workflow requires at least version 1.161.0 of the generator"


def test_ensure_minimum_version_rejects_unparseable() -> None:
    result = ensure_minimum_version("nightly")
    assert isinstance(result, Err)
    assert result.error.kind == "generator_too_old"
