"""Run-mode settings for an import."""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .env import env_flag, env_int, env_str


@dataclass(frozen=True, slots=True)
class RunConfig:
    """Flags and knobs controlling one import run."""

    threads: int = 1
    debug: bool = False
    dry_run: bool = False
    replace: bool = False
    compare: bool = False
    orgs_read_only: bool = False
    project_slug: str | None = None
    orgs_map_file: Path | None = None
    missing_orgs_csv: Path | None = None

    def with_overrides(self, **overrides: Any) -> RunConfig:
        """Return a copy where every non-``None`` override replaces the current value."""

        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)


def resolve_thread_count(*, single_threaded: bool, requested: int | None) -> int:
    """Return the worker count: 1 when forced, else the request capped at the CPU count."""

    if single_threaded:
        return 1
    available = os.cpu_count() or 1
    if requested is not None and requested > 0:
        return min(requested, available)
    return available


def get_run_config() -> RunConfig:
    orgs_map = env_str("ORGS_MAP_FILE")
    missing_csv = env_str("MISSING_ORGS_CSV")
    return RunConfig(
        threads=resolve_thread_count(single_threaded=env_flag("ST"), requested=env_int("NCPUS")),
        debug=env_flag("DEBUG"),
        dry_run=env_flag("DRY"),
        replace=env_flag("REPLACE"),
        compare=env_flag("COMPARE"),
        orgs_read_only=env_flag("ORGS_RO"),
        project_slug=env_str("PROJECT_SLUG"),
        orgs_map_file=Path(orgs_map) if orgs_map else None,
        missing_orgs_csv=Path(missing_csv) if missing_csv else None,
    )
