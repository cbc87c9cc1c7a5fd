"""Typed run configuration.

A `RunConfig` is built once at the start of a run and passed explicitly to
every component. Nothing below the CLI reads the process environment.

Sources, later ones overriding earlier ones:
- an optional TOML file with a `[workflow]` table
- `REGEN_*` environment variables (plus `GITHUB_OUTPUT`)
- explicit overrides from CLI flags
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_table

__all__ = [
    "ConfigError",
    "OperatingMode",
    "RunConfig",
    "load_run_config",
    "DEFAULT_LEDGER_FILE",
    "DEFAULT_BRANCH",
    "DEFAULT_GENERATOR_BIN",
]

DEFAULT_LEDGER_FILE = ".regen/releases.json"
DEFAULT_BRANCH = "main"
DEFAULT_GENERATOR_BIN = "speakeasy"
DEFAULT_DOC_LOCATION = "openapi.yaml"

# Environment variable -> [workflow] key
_ENV_KEYS: tuple[tuple[str, str], ...] = (
    ("REGEN_MODE", "mode"),
    ("REGEN_DEBUG", "debug"),
    ("REGEN_CREATE_RELEASE", "create_release"),
    ("REGEN_GENERATOR_VERSION", "generator_version"),
    ("REGEN_DOC_LOCATION", "doc_location"),
    ("REGEN_REPO", "repo"),
    ("REGEN_DEFAULT_BRANCH", "default_branch"),
    ("REGEN_LEDGER_FILE", "ledger_file"),
    ("REGEN_BIN", "generator_bin"),
    ("GITHUB_OUTPUT", "output_file"),
)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when the run configuration cannot be loaded or is invalid."""

    message: str
    path: Path | None = None


class OperatingMode(Enum):
    """How a run publishes its result."""

    PR = "pr"
    DIRECT = "direct"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, raw: str) -> OperatingMode | None:
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Immutable, process-wide settings for one run.

    Attributes:
        workspace_root: Checkout of the SDK repository.
        mode: PR (review request) or DIRECT (merge + optional release).
        invoke_time: When the run started; used for the release title.
        debug: Keep the working branch and print debug output.
        create_release: In DIRECT mode, tag a release after merging.
        pinned_generator_version: Exact generator version, or "latest".
        doc_location: API document handed to the generator.
        repo_slug: owner/name on GitHub; None lets gh infer it from the checkout.
        default_branch: Branch that working branches fork from and merge into.
        ledger_file: Ledger location relative to the workspace root.
        generator_bin: Generator executable.
        output_file: Where outputs are flushed; None prints them to stdout.
    """

    workspace_root: Path
    mode: OperatingMode
    invoke_time: datetime
    debug: bool = False
    create_release: bool = True
    pinned_generator_version: str = "latest"
    doc_location: str = DEFAULT_DOC_LOCATION
    repo_slug: str | None = None
    default_branch: str = DEFAULT_BRANCH
    ledger_file: str = DEFAULT_LEDGER_FILE
    generator_bin: str = DEFAULT_GENERATOR_BIN
    output_file: Path | None = None

    @property
    def ledger_path(self) -> Path:
        return self.workspace_root / self.ledger_file

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, object],
        *,
        workspace_root: Path,
        invoke_time: datetime,
    ) -> Result[RunConfig, ConfigError]:
        """Create a RunConfig from a flat `[workflow]`-shaped mapping."""
        raw_mode = get_str(data, "mode") or OperatingMode.PR.value
        mode = OperatingMode.parse(raw_mode)
        if mode is None:
            return Err(ConfigError(f"invalid mode: {raw_mode!r} (expected 'pr' or 'direct')"))

        flags: dict[str, bool] = {}
        for key, default in (("debug", False), ("create_release", True)):
            if key not in data:
                flags[key] = default
                continue
            value = get_bool(data, key)
            if value is None:
                return Err(ConfigError(f"invalid boolean for {key}: {data.get(key)!r}"))
            flags[key] = value

        output_file = get_str(data, "output_file")

        return Ok(
            cls(
                workspace_root=workspace_root,
                mode=mode,
                invoke_time=invoke_time,
                debug=flags["debug"],
                create_release=flags["create_release"],
                pinned_generator_version=get_str(data, "generator_version") or "latest",
                doc_location=get_str(data, "doc_location") or DEFAULT_DOC_LOCATION,
                repo_slug=get_str(data, "repo"),
                default_branch=get_str(data, "default_branch") or DEFAULT_BRANCH,
                ledger_file=get_str(data, "ledger_file") or DEFAULT_LEDGER_FILE,
                generator_bin=get_str(data, "generator_bin") or DEFAULT_GENERATOR_BIN,
                output_file=Path(output_file) if output_file else None,
            )
        )

    def with_overrides(self, **changes: object) -> RunConfig:
        """Return a copy with the non-None overrides applied."""
        applied = {k: v for k, v in changes.items() if v is not None}
        return replace(self, **applied)  # type: ignore[arg-type]


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(get_table(data, "workflow") or {})


def load_run_config(
    *,
    workspace_root: Path,
    environ: Mapping[str, str],
    invoke_time: datetime,
    config_path: Path | None = None,
) -> Result[RunConfig, ConfigError]:
    """Merge TOML file and environment into a RunConfig.

    Args:
        workspace_root: SDK repository checkout.
        environ: Environment mapping (usually os.environ).
        invoke_time: Run start time.
        config_path: Optional TOML file with a [workflow] table.

    Returns:
        Ok(RunConfig) on success, Err(ConfigError) on failure
    """
    merged: StrDict = {}
    if config_path is not None:
        table = _parse_toml(config_path)
        if isinstance(table, Err):
            return table
        merged.update(table.value)

    for env_key, key in _ENV_KEYS:
        value = environ.get(env_key)
        if value is not None and value.strip():
            merged[key] = value

    result = RunConfig.from_dict(merged, workspace_root=workspace_root, invoke_time=invoke_time)
    if isinstance(result, Err) and config_path is not None:
        return Err(ConfigError(result.error.message, path=config_path))
    return result
