"""Read identity export files from disk."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from shimport.domain.model import IdentityBatch, UniqueIdentity

from .schema import ExportDocument
from .translator import translate_document

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

log = logging.getLogger(__name__)


class ExportFormatError(ValueError):
    """Raised when an export file cannot be read or does not match the schema."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path


def load_export_file(path: Path) -> list[UniqueIdentity]:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ExportFormatError(path, f"cannot read file: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ExportFormatError(path, f"malformed JSON: {exc}") from exc
    try:
        document = ExportDocument.model_validate(raw)
    except ValidationError as exc:
        raise ExportFormatError(path, f"unexpected export shape: {exc}") from exc
    return translate_document(document)


def load_export_files(paths: Iterable[Path]) -> IdentityBatch:
    """Load every file up front so a bad file aborts before anything is written."""

    files = list(paths)
    batch = IdentityBatch()
    for index, path in enumerate(files, start=1):
        log.info("Importing %d/%d: %s", index, len(files), path)
        uidentities = load_export_file(path)
        log.info("%s: %d records", path, len(uidentities))
        batch.extend(uidentities, source=path)
    return batch
