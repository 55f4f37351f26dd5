"""Identity store backed by a SQLAlchemy engine.

Every public method runs in its own short ``engine.begin()`` block, so the
store can be shared by worker threads: they share the pool, never a
connection. Nothing here spans more than one logical statement group.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, case, delete, exists, func, insert, or_, select
from sqlalchemy.dialects import postgresql, sqlite

from shimport.domain.model import Enrollment, Identity, Profile
from shimport.domain.ports import InsertOutcome

from .tables import (
    countries_table,
    enrollments_table,
    identities_table,
    organizations_table,
    profiles_table,
    uidentities_table,
)

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Insert, Table
    from sqlalchemy.engine import Connection, Engine

    from shimport.domain.model import Country

log = logging.getLogger(__name__)


class SqlAlchemyIdentityStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    # Registries ------------------------------------------------------------

    def load_organizations(self) -> dict[str, int]:
        stmt = select(organizations_table.c.name, organizations_table.c.id)
        with self.engine.connect() as connection:
            return {name: org_id for name, org_id in connection.execute(stmt)}

    def insert_organization(self, name: str) -> InsertOutcome:
        return self._insert_ignoring_conflict(organizations_table, {"name": name})

    def find_organization_id(self, name: str) -> int | None:
        stmt = select(organizations_table.c.id).where(organizations_table.c.name == name)
        with self.engine.connect() as connection:
            return connection.execute(stmt).scalars().first()

    def insert_country(self, country: Country) -> InsertOutcome:
        return self._insert_ignoring_conflict(
            countries_table,
            {"code": country.code, "alpha3": country.alpha3, "name": country.name},
        )

    # Unique identities and profiles ----------------------------------------

    def uidentity_exists(self, uuid: str) -> bool:
        stmt = select(exists().where(uidentities_table.c.uuid == uuid))
        with self.engine.connect() as connection:
            return bool(connection.execute(stmt).scalar())

    def insert_uidentity(self, uuid: str) -> None:
        stmt = insert(uidentities_table).values(uuid=uuid, last_modified=func.now())
        with self.engine.begin() as connection:
            connection.execute(stmt)

    def get_profile(self, uuid: str) -> Profile | None:
        stmt = select(profiles_table).where(profiles_table.c.uuid == uuid).limit(1)
        with self.engine.connect() as connection:
            row = connection.execute(stmt).mappings().first()
        if row is None:
            return None
        return Profile(
            uuid=row["uuid"],
            name=row["name"],
            email=row["email"],
            gender=row["gender"],
            gender_acc=row["gender_acc"],
            is_bot=row["is_bot"],
            country_code=row["country_code"],
        )

    def delete_profile(self, uuid: str) -> int:
        stmt = delete(profiles_table).where(profiles_table.c.uuid == uuid)
        with self.engine.begin() as connection:
            return connection.execute(stmt).rowcount

    def insert_profile(self, profile: Profile) -> None:
        stmt = insert(profiles_table).values(
            uuid=profile.uuid,
            name=profile.name,
            email=profile.email,
            gender=profile.gender,
            gender_acc=profile.gender_acc,
            is_bot=profile.is_bot,
            country_code=profile.country_code,
        )
        with self.engine.begin() as connection:
            connection.execute(stmt)

    # Identities ------------------------------------------------------------

    def find_identity(self, identity: Identity) -> Identity | None:
        table = identities_table
        stmt = (
            select(
                table.c.id,
                table.c.uuid,
                table.c.source,
                table.c.name,
                table.c.email,
                table.c.username,
            )
            .where(_identity_match(identity))
            .order_by(case((table.c.id == identity.id, 0), else_=1), table.c.id)
            .limit(1)
        )
        with self.engine.connect() as connection:
            row = connection.execute(stmt).mappings().first()
        if row is None:
            return None
        return Identity(
            id=row["id"],
            uuid=row["uuid"],
            source=row["source"],
            name=row["name"],
            email=row["email"],
            username=row["username"],
        )

    def delete_identities(self, identity: Identity) -> int:
        stmt = delete(identities_table).where(_identity_match(identity))
        with self.engine.begin() as connection:
            return connection.execute(stmt).rowcount

    def insert_identity(self, identity: Identity) -> None:
        stmt = insert(identities_table).values(
            id=identity.id,
            uuid=identity.uuid,
            source=identity.source,
            name=identity.name,
            email=identity.email,
            username=identity.username,
            last_modified=func.now(),
        )
        with self.engine.begin() as connection:
            connection.execute(stmt)

    # Enrollments -----------------------------------------------------------

    def has_enrollments(self, uuid: str, project_slug: str | None) -> bool:
        stmt = select(exists().where(_enrollment_scope(uuid, project_slug)))
        with self.engine.connect() as connection:
            return bool(connection.execute(stmt).scalar())

    def find_enrollments(self, uuid: str, project_slug: str | None) -> list[Enrollment]:
        table = enrollments_table
        stmt = (
            select(
                table.c.uuid,
                table.c.organization_id,
                table.c.start,
                table.c.end,
                table.c.project_slug,
            )
            .where(_enrollment_scope(uuid, project_slug))
            .order_by(table.c.id)
        )
        with self.engine.connect() as connection:
            rows = connection.execute(stmt).all()
        return [
            Enrollment(
                uuid=row.uuid,
                organization="",
                org_id=row.organization_id,
                start=row.start,
                end=row.end,
                project_slug=row.project_slug,
            )
            for row in rows
        ]

    def delete_enrollments(self, uuid: str, project_slug: str | None) -> int:
        stmt = delete(enrollments_table).where(_enrollment_scope(uuid, project_slug))
        with self.engine.begin() as connection:
            return connection.execute(stmt).rowcount

    def insert_enrollment(self, enrollment: Enrollment) -> None:
        stmt = insert(enrollments_table).values(
            uuid=enrollment.uuid,
            organization_id=enrollment.org_id,
            start=enrollment.period_start(),
            end=enrollment.period_end(),
            project_slug=enrollment.project_slug,
        )
        with self.engine.begin() as connection:
            connection.execute(stmt)

    # Helpers ---------------------------------------------------------------

    def _insert_ignoring_conflict(self, table: Table, values: dict[str, Any]) -> InsertOutcome:
        """Insert a row, reporting a uniqueness conflict instead of raising it."""

        with self.engine.begin() as connection:
            inserted = _insert_or_ignore(connection, table, values)
        if not inserted:
            log.debug("Row already present in %s: %s", table.name, values)
            return InsertOutcome.CONFLICT
        return InsertOutcome.INSERTED


def _insert_or_ignore(connection: Connection, table: Table, values: dict[str, Any]) -> bool:
    stmt = _conflict_free_insert(connection.dialect.name, table, values)
    if stmt is None:
        conflict = select(exists().where(_conflict_filter(table, values)))
        if connection.execute(conflict).scalar():
            return False
        stmt = insert(table).values(**values)
    return connection.execute(stmt).rowcount > 0


def _conflict_free_insert(dialect: str, table: Table, values: dict[str, Any]) -> Insert | None:
    """Native insert that skips uniqueness conflicts only, where the dialect has one.

    MySQL and MariaDB get ``None``: ``INSERT IGNORE`` would also swallow
    truncation and foreign key errors.
    """

    if dialect == "sqlite":
        return sqlite.insert(table).values(**values).on_conflict_do_nothing()
    if dialect == "postgresql":
        return postgresql.insert(table).values(**values).on_conflict_do_nothing()
    return None


def _conflict_filter(table: Table, values: dict[str, Any]) -> ColumnElement[bool]:
    """Match rows sharing any primary key or unique column value with ``values``."""

    keys = [
        column == values[column.name]
        for column in table.c
        if (column.primary_key or column.unique) and column.name in values
    ]
    return or_(*keys)


def _identity_match(identity: Identity) -> ColumnElement[bool]:
    """``id = :id OR (name, email, username, source) = :tuple``.

    Like plain SQL equality, a NULL in the content tuple never matches, so the
    content branch is only used when every part is present.
    """

    table = identities_table
    by_id = table.c.id == identity.id
    if identity.name is None or identity.email is None or identity.username is None:
        return by_id
    by_content = and_(
        table.c.name == identity.name,
        table.c.email == identity.email,
        table.c.username == identity.username,
        table.c.source == identity.source,
    )
    return or_(by_id, by_content)


def _enrollment_scope(uuid: str, project_slug: str | None) -> ColumnElement[bool]:
    table = enrollments_table
    if project_slug is None:
        return and_(table.c.uuid == uuid, table.c.project_slug.is_(None))
    return and_(table.c.uuid == uuid, table.c.project_slug == project_slug)
