"""Engine lifecycle for the SQLAlchemy identity store."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url

from .store import SqlAlchemyIdentityStore
from .tables import create_all_tables

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when the store is used before initialisation (or initialised twice)."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None


_STATE = _AdapterState()


def _engine_options(database_uri: str, pool_size: int | None) -> dict[str, Any]:
    options: dict[str, Any] = {"future": True}
    if make_url(database_uri).get_backend_name() == "sqlite":
        return options
    options["pool_pre_ping"] = True
    if pool_size is not None and pool_size > 0:
        options["pool_size"] = pool_size
    return options


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    pool_size: int | None = None,
    force: bool = False,
    create_schema: bool = True,
) -> Engine:
    """Initialise the engine and, unless ``create_schema`` is off, make sure the schema exists."""

    if _STATE.engine is not None and not force:
        raise StartupError("Identity store already initialised. Pass force=True to reconfigure.")
    if engine is None:
        if database_uri is None:
            raise StartupError("Either an engine or a database URI is required")
        engine = create_engine(database_uri, **_engine_options(database_uri, pool_size))

    if create_schema:
        create_all_tables(engine)
    if _STATE.engine is not None and _STATE.engine is not engine:
        _STATE.engine.dispose()
    _STATE.engine = engine
    return engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


def build_store() -> SqlAlchemyIdentityStore:
    if _STATE.engine is None:
        raise StartupError(
            "Identity store not initialised. Call shimport.adapters.sqlalchemy."
            "engine.startup() before requesting a store."
        )
    return SqlAlchemyIdentityStore(_STATE.engine)
