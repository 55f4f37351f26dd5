"""SQLAlchemy Core tables for the identity store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)

UUID_LENGTH = 128
TEXT_LENGTH = 128
ORGANIZATION_NAME_LENGTH = 191

metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

organizations_table = Table(
    "organizations",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(ORGANIZATION_NAME_LENGTH), nullable=False, unique=True),
)

countries_table = Table(
    "countries",
    metadata,
    Column("code", String(2), primary_key=True),
    Column("alpha3", String(3), nullable=False),
    Column("name", String(ORGANIZATION_NAME_LENGTH), nullable=False),
)

uidentities_table = Table(
    "uidentities",
    metadata,
    Column("uuid", String(UUID_LENGTH), primary_key=True),
    Column("last_modified", DateTime, nullable=True),
)

profiles_table = Table(
    "profiles",
    metadata,
    Column(
        "uuid",
        String(UUID_LENGTH),
        ForeignKey("uidentities.uuid", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column("name", String(TEXT_LENGTH), nullable=True),
    Column("email", String(TEXT_LENGTH), nullable=True),
    Column("gender", String(32), nullable=True),
    Column("gender_acc", Integer, nullable=True),
    Column("is_bot", Boolean, nullable=True),
    Column("country_code", String(2), nullable=True),
)

identities_table = Table(
    "identities",
    metadata,
    Column("id", String(UUID_LENGTH), primary_key=True),
    Column(
        "uuid",
        String(UUID_LENGTH),
        ForeignKey("uidentities.uuid", ondelete="CASCADE"),
        nullable=True,
    ),
    Column("source", String(32), nullable=False),
    Column("name", String(TEXT_LENGTH), nullable=True),
    Column("email", String(TEXT_LENGTH), nullable=True),
    Column("username", String(TEXT_LENGTH), nullable=True),
    Column("last_modified", DateTime, nullable=True),
    Index("ix_identities_content", "name", "email", "username", "source"),
)

enrollments_table = Table(
    "enrollments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "uuid",
        String(UUID_LENGTH),
        ForeignKey("uidentities.uuid", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "organization_id",
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("start", DateTime, nullable=False),
    Column("end", DateTime, nullable=False),
    Column("project_slug", String(TEXT_LENGTH), nullable=True),
    Index("ix_enrollments_scope", "uuid", "project_slug"),
)


def create_all_tables(engine: Engine) -> None:
    """Create database tables that do not exist yet."""

    log.info("Creating all tables")
    metadata.create_all(engine)
