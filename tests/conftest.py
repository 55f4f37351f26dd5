from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002
from sqlalchemy.pool import StaticPool

from shimport.adapters.sqlalchemy import SqlAlchemyIdentityStore, create_all_tables, shutdown

from tests.helpers.memory_store import InMemoryIdentityStore

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> SqlAlchemyIdentityStore:
    return SqlAlchemyIdentityStore(sqlite_engine)


@pytest.fixture
def memory_store() -> InMemoryIdentityStore:
    return InMemoryIdentityStore()


@pytest.fixture(autouse=True)
def _reset_engine_state() -> Iterator[None]:
    try:
        yield
    finally:
        shutdown()
