"""SQLAlchemy adapter package for the identity store."""

from __future__ import annotations

from .engine import StartupError, build_store, configured_engine, is_started, shutdown, startup
from .store import SqlAlchemyIdentityStore
from .tables import (
    countries_table,
    create_all_tables,
    enrollments_table,
    identities_table,
    metadata,
    organizations_table,
    profiles_table,
    uidentities_table,
)

__all__ = [
    "SqlAlchemyIdentityStore",
    "StartupError",
    "build_store",
    "configured_engine",
    "countries_table",
    "create_all_tables",
    "enrollments_table",
    "identities_table",
    "is_started",
    "metadata",
    "organizations_table",
    "profiles_table",
    "shutdown",
    "startup",
    "uidentities_table",
]
