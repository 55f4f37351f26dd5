from __future__ import annotations

import pytest

from shimport.domain.normalize import strip_optional, strip_unicode, truncate_bytes


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Łukasz Gryglicki", "ukasz Gryglicki"),
        ("José Müller", "Jose Muller"),
        ("tab\there", "tabhere"),
        ("plain ascii", "plain ascii"),
        ("日本", ""),
    ],
)
def test_strip_unicode(raw: str, expected: str) -> None:
    assert strip_unicode(raw) == expected


def test_strip_unicode_is_idempotent() -> None:
    once = strip_unicode("Ærøskøbing café")

    assert strip_unicode(once) == once


def test_strip_optional_keeps_none() -> None:
    assert strip_optional(None) is None


def test_truncate_bytes_never_splits_a_character() -> None:
    assert truncate_bytes("éé", 3) == "é"
    assert truncate_bytes("US-extra", 2) == "US"


def test_truncate_bytes_drops_nul() -> None:
    assert truncate_bytes("a\x00b", 10) == "ab"
