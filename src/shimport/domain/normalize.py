"""Text normalization shared by comparisons and writes."""

from __future__ import annotations

import unicodedata
from typing import overload


def strip_unicode(value: str) -> str:
    """Decompose ``value`` (NFKD) and keep printable ASCII only.

    Accented letters survive as their base letter; everything below ``0x20`` or
    at/above ``0x7f`` is dropped.
    """

    text = unicodedata.normalize("NFKD", value)
    return "".join(ch for ch in text if 32 <= ord(ch) < 127)


@overload
def strip_optional(value: str) -> str: ...
@overload
def strip_optional(value: None) -> None: ...
def strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return strip_unicode(value)


def truncate_bytes(value: str, size: int) -> str:
    """Return the longest prefix of ``value`` whose UTF-8 encoding fits in ``size`` bytes."""

    value = value.replace("\x00", "")
    if len(value.encode("utf-8")) <= size:
        return value
    result: list[str] = []
    used = 0
    for ch in value:
        width = len(ch.encode("utf-8"))
        if used + width > size:
            break
        result.append(ch)
        used += width
    return "".join(result)


def truncate_optional(value: str | None, size: int) -> str | None:
    if value is None:
        return None
    return truncate_bytes(value, size)
