from __future__ import annotations

from datetime import datetime
from pathlib import Path

from shimport.domain.model import Country, Enrollment

from tests.helpers.identities import make_batch, make_enrollment, make_uidentity


def test_enrollment_period_defaults() -> None:
    enrollment = Enrollment(uuid="u1", organization="Acme")

    assert enrollment.period_start() == datetime(1900, 1, 1)
    assert enrollment.period_end() == datetime(2100, 1, 1)


def test_batch_collects_organization_names() -> None:
    batch = make_batch(
        make_uidentity("u1", enrollments=[make_enrollment("Acme"), make_enrollment("Globex")]),
        make_uidentity("u2", enrollments=[make_enrollment("Acme", uuid="u2")]),
    )

    assert batch.organization_names() == {"Acme", "Globex"}
    assert len(batch) == 2


def test_batch_countries_first_occurrence_wins() -> None:
    first = Country(code="PL", alpha3="POL", name="Poland")
    second = Country(code="PL", alpha3="POL", name="Polska")
    batch = make_batch(
        make_uidentity("u1", country=first),
        make_uidentity("u2", country=second),
        make_uidentity("u3"),
    )

    assert batch.countries() == {"PL": first}


def test_batch_tracks_source_files() -> None:
    batch = make_batch()
    batch.extend([make_uidentity("u1")], source=Path("a.json"))
    batch.extend([make_uidentity("u2")], source=Path("b.json"))

    assert batch.files == [Path("a.json"), Path("b.json")]
    assert [item.uuid for item in batch] == ["u1", "u2"]
