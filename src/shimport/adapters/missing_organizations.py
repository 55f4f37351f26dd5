"""CSV export of organization names that could not be resolved."""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

log = logging.getLogger(__name__)

HEADER: Final[tuple[str]] = ("Organization Name",)


def write_missing_organizations(names: Iterable[str], path: Path) -> int:
    """Write one organization name per row below a header; returns the row count."""

    rows = sorted(set(names))
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(HEADER)
        writer.writerows((name,) for name in rows)
    log.info("Wrote %d missing organizations to %s", len(rows), path)
    return len(rows)
