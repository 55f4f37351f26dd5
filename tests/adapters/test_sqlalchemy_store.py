from __future__ import annotations

from datetime import datetime

import pytest
from sqlalchemy import insert, select

from shimport.adapters.sqlalchemy import (
    SqlAlchemyIdentityStore,
    enrollments_table,
    identities_table,
    organizations_table,
    uidentities_table,
)
from shimport.adapters.sqlalchemy import store as store_module
from shimport.domain.model import Country, Enrollment, Identity, Profile
from shimport.domain.organizations import OrganizationRegistry
from shimport.domain.ports import IdentityStore, InsertOutcome
from shimport.domain.reconcile import ReconcileOptions, ReconciliationWorker
from shimport.domain.stats import EntityStats, StatsAggregator

from tests.helpers.identities import make_enrollment, make_identity, make_uidentity


def _seed_identity(store: SqlAlchemyIdentityStore, identity: Identity) -> None:
    with store.engine.begin() as connection:
        connection.execute(
            insert(identities_table).values(
                id=identity.id,
                uuid=identity.uuid,
                source=identity.source,
                name=identity.name,
                email=identity.email,
                username=identity.username,
            )
        )


def test_store_satisfies_port(sqlite_store: SqlAlchemyIdentityStore) -> None:
    assert isinstance(sqlite_store, IdentityStore)


def test_insert_organization_reports_conflict(sqlite_store: SqlAlchemyIdentityStore) -> None:
    assert sqlite_store.insert_organization("Acme Inc") is InsertOutcome.INSERTED
    assert sqlite_store.insert_organization("Acme Inc") is InsertOutcome.CONFLICT

    org_id = sqlite_store.find_organization_id("Acme Inc")

    assert sqlite_store.load_organizations() == {"Acme Inc": org_id}
    assert sqlite_store.find_organization_id("Globex") is None


def test_insert_country_is_idempotent(sqlite_store: SqlAlchemyIdentityStore) -> None:
    poland = Country(code="PL", alpha3="POL", name="Poland")

    assert sqlite_store.insert_country(poland) is InsertOutcome.INSERTED
    assert sqlite_store.insert_country(poland) is InsertOutcome.CONFLICT


def test_profile_round_trip(sqlite_store: SqlAlchemyIdentityStore) -> None:
    sqlite_store.insert_uidentity("u1")
    sqlite_store.insert_profile(
        Profile(uuid="u1", name="Jane", email=None, is_bot=True, gender_acc=80, country_code="PL")
    )

    profile = sqlite_store.get_profile("u1")

    assert sqlite_store.uidentity_exists("u1")
    assert profile == Profile(
        uuid="u1", name="Jane", email=None, is_bot=True, gender_acc=80, country_code="PL"
    )
    assert sqlite_store.delete_profile("u1") == 1
    assert sqlite_store.get_profile("u1") is None


def test_find_identity_prefers_exact_id(sqlite_store: SqlAlchemyIdentityStore) -> None:
    sqlite_store.insert_uidentity("u1")
    _seed_identity(sqlite_store, make_identity("a-other"))
    _seed_identity(sqlite_store, make_identity("z-same"))

    exact = sqlite_store.find_identity(make_identity("z-same"))
    by_content = sqlite_store.find_identity(make_identity("new"))

    assert exact is not None
    assert exact.id == "z-same"
    assert by_content is not None
    assert by_content.id == "a-other"


def test_identity_content_match_ignores_nulls(sqlite_store: SqlAlchemyIdentityStore) -> None:
    sqlite_store.insert_uidentity("u1")
    _seed_identity(sqlite_store, make_identity("stored", email=None))

    probe = make_identity("probe", email=None)

    assert sqlite_store.find_identity(probe) is None
    assert sqlite_store.delete_identities(probe) == 0


def test_delete_identities_removes_every_match(sqlite_store: SqlAlchemyIdentityStore) -> None:
    sqlite_store.insert_uidentity("u1")
    _seed_identity(sqlite_store, make_identity("one"))
    _seed_identity(sqlite_store, make_identity("two"))
    _seed_identity(sqlite_store, make_identity("three", source="gitlab"))

    removed = sqlite_store.delete_identities(make_identity("one"))

    with sqlite_store.engine.connect() as connection:
        remaining = connection.execute(select(identities_table.c.id)).scalars().all()
    assert removed == 2
    assert remaining == ["three"]


def test_enrollments_are_scoped_by_project(sqlite_store: SqlAlchemyIdentityStore) -> None:
    sqlite_store.insert_uidentity("u1")
    sqlite_store.insert_organization("Acme Inc")
    org_id = sqlite_store.find_organization_id("Acme Inc")
    sqlite_store.insert_enrollment(Enrollment(uuid="u1", organization="Acme Inc", org_id=org_id))
    sqlite_store.insert_enrollment(
        Enrollment(
            uuid="u1",
            organization="Acme Inc",
            org_id=org_id,
            start=datetime(2020, 1, 1),
            project_slug="cncf",
        )
    )

    unscoped = sqlite_store.find_enrollments("u1", None)
    scoped = sqlite_store.find_enrollments("u1", "cncf")

    assert [row.period_start() for row in unscoped] == [datetime(1900, 1, 1)]
    assert unscoped[0].end == datetime(2100, 1, 1)
    assert unscoped[0].organization == ""
    assert [row.project_slug for row in scoped] == ["cncf"]
    assert sqlite_store.delete_enrollments("u1", "cncf") == 1
    assert not sqlite_store.has_enrollments("u1", "cncf")
    assert sqlite_store.has_enrollments("u1", None)


def test_second_import_in_compare_mode_is_a_no_op(sqlite_store: SqlAlchemyIdentityStore) -> None:
    for name in ("Acme Inc", "Globex"):
        sqlite_store.insert_organization(name)
    subject = make_uidentity(
        "u1",
        name="Zoë",
        country=Country(code="PL", alpha3="POL", name="Poland"),
        identities=[make_identity("id-1"), make_identity("id-2", source="gitlab")],
        enrollments=[make_enrollment("Acme Inc"), make_enrollment("Globex", None, None)],
    )

    def run(**options: object) -> EntityStats:
        worker = ReconciliationWorker(
            sqlite_store,
            OrganizationRegistry(sqlite_store.load_organizations()),
            StatsAggregator(),
            ReconcileOptions(**options),  # type: ignore[arg-type]
        )
        stats = worker(subject)
        return stats.enrollments

    assert run() == EntityStats(added=2)
    assert run(compare=True, replace=True) == EntityStats(found=1, same=1)

    with sqlite_store.engine.connect() as connection:
        assert connection.execute(select(enrollments_table.c.id)).scalars().all() == [1, 2]
        assert len(connection.execute(select(uidentities_table)).all()) == 1
        assert len(connection.execute(select(organizations_table)).all()) == 2


def test_mysql_has_no_blanket_ignore_insert() -> None:
    assert store_module._conflict_free_insert("mysql", organizations_table, {"name": "X"}) is None
    assert store_module._conflict_free_insert("mariadb", organizations_table, {"name": "X"}) is None


def test_existence_checked_insert_reports_conflicts_by_key(
    sqlite_store: SqlAlchemyIdentityStore, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(store_module, "_conflict_free_insert", lambda *_args: None)
    poland = Country(code="PL", alpha3="POL", name="Poland")

    assert sqlite_store.insert_organization("Acme Inc") is InsertOutcome.INSERTED
    assert sqlite_store.insert_organization("Acme Inc") is InsertOutcome.CONFLICT
    assert sqlite_store.insert_country(poland) is InsertOutcome.INSERTED
    assert sqlite_store.insert_country(Country(code="PL", alpha3="POL", name="Polska")) is (
        InsertOutcome.CONFLICT
    )
