"""Identity export (JSON) adapter."""

from __future__ import annotations

from .loader import ExportFormatError, load_export_file, load_export_files
from .schema import ExportDocument
from .translator import translate_document

__all__ = [
    "ExportDocument",
    "ExportFormatError",
    "load_export_file",
    "load_export_files",
    "translate_document",
]
